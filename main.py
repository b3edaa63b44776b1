from adofai_level import Level, detect, encode
from pathlib import Path
import logging, re

logging.basicConfig(level=logging.INFO)

input_dir = Path("levels")
output_dir = Path("out")


def sanitize_level_name(name: str) -> str:
    sanitized_name = re.sub(r"[^a-zA-Z0-9 _-]", "", name)
    return sanitized_name


for level_file in sorted(input_dir.glob("*.adofai")):
    with open(level_file, "rb") as f:
        level_data = f.read()

    angle_source = detect(level_data)
    if angle_source != "angleData":
        print(f"Skipped {level_file} ({angle_source or 'not a level'})")
        continue

    level = Level(level_data)
    level.load()

    level_name = sanitize_level_name(level.settings.get("song", level_file.stem))
    output_files_dir = output_dir / (level_name or level_file.stem)
    output_files_dir.mkdir(parents=True, exist_ok=True)

    with open(output_files_dir / "level.json", "w", encoding="utf-8") as f:
        f.write(level.export(as_text=True, indent_char=" ", indent_step=4))

    layout = level.compute_lightweight()
    with open(output_files_dir / "layout.json", "w", encoding="utf-8") as f:
        f.write(encode(layout.to_dict()))
    print(f"Converted {level_file} ({len(level.tiles)} tiles)")
