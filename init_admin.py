#!/usr/bin/env python3
"""
Create the initial admin account.
Run with: python init_admin.py --email admin@oralvis.com --name "Admin"

The password is read from ADMIN_PASSWORD or prompted for.
"""
import getpass
import os

import click

from oralvis import create_app
from oralvis.extensions import db
from oralvis.models import User
from oralvis.models.user import ROLE_ADMIN


@click.command()
@click.option('--email', default='admin@oralvis.com', show_default=True, help='Admin login email')
@click.option('--name', default='OralVis Admin', show_default=True, help='Display name')
def create_admin(email, name):
    """Create an admin user if one with this email does not exist"""
    app = create_app()

    with app.app_context():
        email = email.strip().lower()
        existing = User.query.filter_by(email=email).first()
        if existing:
            click.echo(f"  - User '{email}' already exists (role: {existing.role}), skipping")
            return

        password = os.getenv('ADMIN_PASSWORD') or getpass.getpass('Admin password: ')
        if len(password) < 6:
            raise click.ClickException('Password must be at least 6 characters')

        admin = User(name=name, email=email, role=ROLE_ADMIN)
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()

        click.echo(f"  ✓ Created admin: {email}")
        click.echo("\n⚠️  IMPORTANT: Change the password after first login!")


if __name__ == '__main__':
    create_admin()
