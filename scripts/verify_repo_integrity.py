#!/usr/bin/env python
"""Check that every pipeline module imports and the properties file is complete."""
from __future__ import annotations

import importlib
import sys

MODULES = [
    "contacts_etl.cli",
    "contacts_etl.context",
    "contacts_etl.loader",
    "contacts_etl.connectors.store",
    "contacts_etl.connectors.filesystem",
    "contacts_etl.connectors.object_store",
    "contacts_etl.connectors.relational",
    "contacts_etl.connectors.queue",
]


def _import_all() -> list[str]:
    failures = []
    for module in MODULES:
        try:
            importlib.import_module(module)
        except ImportError as exc:
            failures.append(f"{module}: {exc}")
    return failures


def _missing_properties(config_path: str | None) -> list[str]:
    from contacts_etl.config import PropertiesProvider, Property

    provider = PropertiesProvider.load(config_path)
    required = [
        Property.STORE_PATH,
        Property.STORE_CONTACTS_TABLE,
        Property.STORE_CONTACTS_TEMP_TABLE,
        Property.RELATIONAL_REPORTING_DB,
        Property.RELATIONAL_ACQUITTAL_TABLE,
        Property.APPLICATION_ENV_NAME,
    ]
    return [name.value for name in required if provider.get(name) is None]


def main(argv: list[str]) -> int:
    failures = _import_all()
    for failure in failures:
        print(f"[verify_repo_integrity] import failed: {failure}", file=sys.stderr)
    if failures:
        return 1
    missing = _missing_properties(argv[1] if len(argv) > 1 else None)
    if missing:
        print(
            f"[verify_repo_integrity] missing properties: {', '.join(missing)}",
            file=sys.stderr,
        )
        return 1
    print("[verify_repo_integrity] modules import and properties are complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
