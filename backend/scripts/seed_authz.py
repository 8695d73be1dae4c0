#!/usr/bin/env python
"""Idempotent seed script for permissions, preset roles and the initial admin.

Usage:
    python backend/scripts/seed_authz.py               # seed normally
    python backend/scripts/seed_authz.py --show-roles  # print role -> permission counts (after ensuring seed)
    python backend/scripts/seed_authz.py --dry-run     # seed a throwaway copy, report, change nothing
    python backend/scripts/seed_authz.py --export-json roles.json
"""
from __future__ import annotations
import argparse
import hashlib
import json
import logging
import os
import sys
import textwrap

# Allow running from repo root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from mint import build_core  # noqa: E402
from mint.config.settings import load_settings  # noqa: E402
from mint.db import Database  # noqa: E402
from mint.services.bootstrap import bootstrap_authz, build_role_permission_map, ensure_initial_admin  # noqa: E402

log = logging.getLogger('mint.seed')


def print_role_summary(role_map):
    if not role_map:
        print('[INFO] No roles present.')
        return
    name_w = max(len(name) for name in role_map)
    print(f"{'Role'.ljust(name_w)} | Count | Sample (up to 8)")
    print('-' * (name_w + 40))
    for name, perms in role_map.items():
        print(f"{name.ljust(name_w)} | {str(len(perms)).rjust(5)} | {', '.join(perms[:8])}")


def roles_checksum(role_map) -> str:
    canonical = json.dumps(role_map, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description='Seed RBAC permissions & roles',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_authz.py\n  dry run: seed_authz.py --dry-run\n  show roles: seed_authz.py --show-roles\n"""),
    )
    p.add_argument('--database-url', help='Override DATABASE_URL')
    p.add_argument('--show-roles', action='store_true', help='Print role permission counts after seeding')
    p.add_argument('--dry-run', action='store_true', help='Seed an in-memory database instead (no changes)')
    p.add_argument('--export-json', nargs='?', const='-', metavar='FILE', help='Export role->permissions JSON (to FILE or stdout if omitted)')
    p.add_argument('--skip-admin', action='store_true', help='Do not create the initial admin user')
    return p.parse_args(argv)


def run(args, settings=None) -> dict:
    settings = settings or load_settings({'DATABASE_URL': args.database_url} if args.database_url else None)
    url = 'sqlite:///:memory:' if args.dry_run else settings['DATABASE_URL']
    db = Database(url)
    try:
        # Auto-create schema for bootstrap; in real env prefer alembic upgrade
        db.create_all()
        core = build_core(db, settings)
        counts = bootstrap_authz(core.catalog, core.registry)
        if not args.skip_admin:
            ensure_initial_admin(
                core.credentials, core.assignment, core.hasher,
                os.getenv('SEED_ADMIN_EMAIL', 'admin@mintplatform.com'),
                os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'),
            )
        role_map = build_role_permission_map(core.registry)
    finally:
        db.dispose()

    prefix = '[DRY-RUN] (in-memory)' if args.dry_run else '[DONE]'
    print(f"{prefix} Permissions created: {counts['permissions_created']}, "
          f"Roles created: {counts['roles_created']}, Grants created: {counts['grants_created']}")
    if args.show_roles:
        print('\nRole Permission Summary:')
        print_role_summary(role_map)
    if args.export_json is not None:
        # Deterministic checksum for build caching / change detection
        payload = {
            'roles': role_map,
            'meta': {
                'distinct_permissions': len({p for plist in role_map.values() for p in plist}),
                'roles_checksum_sha256': roles_checksum(role_map),
                'role_names_sorted': sorted(role_map),
                'dry_run': args.dry_run,
            },
        }
        if args.export_json == '-':
            print(json.dumps(payload, indent=2, sort_keys=True))
        else:
            with open(args.export_json, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, sort_keys=True)
            print(f'[INFO] Exported JSON to {args.export_json}')
    return role_map


def main(argv=None):
    logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO'), format='%(levelname)s %(name)s: %(message)s')
    run(parse_args(argv))


if __name__ == '__main__':
    main()
