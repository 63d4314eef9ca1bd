#!/usr/bin/env python3
"""Validate maintenance workspace YAML files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from maintenance.loader import load_schema


def validate_workspace_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single workspace YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given files, or every YAML file in workspaces/."""
    argv = sys.argv[1:] if argv is None else argv
    schema = load_schema()

    if argv:
        yaml_files = [Path(a) for a in argv]
    else:
        workspaces_dir = Path.cwd() / "workspaces"
        if not workspaces_dir.exists():
            print(f"Error: workspaces directory not found: {workspaces_dir}")
            return 1
        yaml_files = sorted(
            list(workspaces_dir.glob("*.yaml")) + list(workspaces_dir.glob("*.yml"))
        )

    if not yaml_files:
        print("Warning: No YAML files found")
        return 0

    all_valid = True
    for filepath in yaml_files:
        errors = validate_workspace_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
