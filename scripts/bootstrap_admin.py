#!/usr/bin/env python3
"""
bootstrap_admin.py: create the first admin account, or promote an existing user.

Signup never grants the admin role to anonymous callers, so the first admin
has to be created out of band:

    POSTGRES_DSN=... python scripts/bootstrap_admin.py --email admin@example.com --name Admin --password ...
"""
import argparse, os, sys
from storefront.core.config import settings
from storefront.core.resources import Resources
from storefront.db.models import Role
from storefront.store.users import UserRepository

def bootstrap_admin(users: UserRepository, email: str, name: str, password: str | None) -> str:
    user = users.find_by_email(email)
    if user is not None:
        if user.role == Role.admin:
            return 'already_admin'
        users.set_role(user, Role.admin)
        return 'promoted'
    if not password:
        raise ValueError('password is required to create a new admin')
    users.create({'name': name, 'email': email, 'password': password, 'role': Role.admin})
    return 'created'

def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument('--email', default=os.getenv('ADMIN_EMAIL'))
    ap.add_argument('--name', default=os.getenv('ADMIN_NAME', 'Admin'))
    ap.add_argument('--password', default=os.getenv('ADMIN_PASSWORD'))
    ap.add_argument('--create-tables', action='store_true', help='Create missing tables first')
    args = ap.parse_args(argv)
    if not args.email:
        ap.error('--email (or ADMIN_EMAIL) is required')

    resources = Resources.from_settings(settings)
    try:
        if args.create_tables:
            resources.create_tables()
        db = resources.session_factory()
        try:
            status = bootstrap_admin(UserRepository(db), args.email, args.name, args.password)
        finally:
            db.close()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        resources.close()
    print(f"{args.email}: {status}")
    return 0

if __name__ == '__main__':
    sys.exit(main())
