#!/usr/bin/env python3
"""
Build script for deployment.
This script creates the collection table, removes orphaned fee ledgers and
optionally seeds the sample kindergarten.
"""
import argparse

from app import create_app, get_office
from config import config_by_name


def initialize_database(config_name='production', seed=False):
    """Initialize database for deployment."""
    app = create_app(config_by_name[config_name])
    with app.app_context():
        office = get_office()

        print("Checking for orphaned fee ledgers...")
        purged = office.purge_orphan_ledgers()
        print(f"Removed {purged} orphaned fee ledgers.")

        if seed:
            print("Seeding sample classes and students...")
            if office.seed_sample_data():
                print("Sample data created.")
            else:
                print("Collections already hold data; nothing seeded.")

        print("Database initialization completed successfully!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--config', default='production', choices=sorted(config_by_name))
    parser.add_argument('--seed', action='store_true', help='seed sample data into empty collections')
    args = parser.parse_args()
    initialize_database(args.config, seed=args.seed)
