#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from recurpay.config.loader import ConfigLoader
from recurpay.config.validation import ConfigValidator, ValidationError


def validate_config_dir(config_dir: Path) -> List[ValidationError]:
    """Validate the merged configuration found in a config directory."""
    loader = ConfigLoader.create(config_dir)
    config = loader.merge_config()
    return ConfigValidator.validate_config(config)


def main():
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else project_root / "config"
    print(f"🔍 Validating scheduler configuration in {config_dir}...")

    try:
        errors = validate_config_dir(config_dir)
    except Exception as e:
        print(f"❌ Error loading configuration: {e}")
        sys.exit(1)

    if errors:
        print(f"❌ Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        sys.exit(1)

    config = ConfigLoader.create(config_dir).load()
    trigger = config.trigger
    print(
        f"✅ Daily run at {trigger.hour:02d}:00, UTC offset {trigger.utc_offset_minutes:+d} min, "
        f"re-check every {trigger.recheck_interval_seconds}s"
    )
    print(f"\n🎉 All configuration validation passed!")
    sys.exit(0)


if __name__ == "__main__":
    main()
