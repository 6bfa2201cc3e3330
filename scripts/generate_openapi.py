from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

import yaml

from services.common.settings import AppSettings
from services.template_service.presentation.main import create_app


DEFAULT_OUTPUT = Path("services") / "template_service" / "openapi.yaml"


def dump_openapi(app, destination: Path) -> None:
    openapi_schema = app.openapi()
    destination.write_text(
        yaml.safe_dump(openapi_schema, sort_keys=False, allow_unicode=True) + "\n",
        encoding="utf-8",
    )


def ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def generate_spec(output_path: Path, settings: Optional[AppSettings] = None) -> Path:
    app = create_app(settings)
    ensure_directory(output_path)
    dump_openapi(app, output_path)
    return output_path


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Write the TemplateApp OpenAPI document as YAML.")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    args = parser.parse_args(argv)
    output_path = generate_spec(args.output)
    print(f"Generated OpenAPI spec for template_service at {output_path}")


if __name__ == "__main__":
    main()
