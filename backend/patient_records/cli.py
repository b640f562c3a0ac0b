"""Patient Records CLI - Command Line Interface for administrative tasks.

Usage:
    python -m patient_records.cli <command> [options]

Commands:
    version         Show version information
    check-db        Check database connectivity
    init-db         Create any missing tables
    register        Register a patient and print the new patient number
    lookup          Find a patient by patient number

Examples:
    python -m patient_records.cli init-db
    python -m patient_records.cli register --name "Jane Doe" --age 34 --gender Female
    python -m patient_records.cli lookup PT-20240115-0001

"""

import argparse
import asyncio
import sys
from collections.abc import Sequence
from typing import NoReturn

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from patient_records.core.config import settings
from patient_records.core.errors import RecordsError
from patient_records.models.patient import GENDER_CHOICES


def print_banner() -> None:
    """Print Patient Records CLI banner."""
    print("\n" + "=" * 50)
    print(" Patient Records CLI")
    print("=" * 50 + "\n")


def print_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"ERROR: {message}", file=sys.stderr)


def print_success(message: str) -> None:
    print(f"SUCCESS: {message}")


def print_info(message: str) -> None:
    print(f"INFO: {message}")


async def check_database() -> bool:
    """Check database connectivity."""
    from patient_records.models.base import async_session_maker

    try:
        print_info("Checking database connectivity...")
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
            print_success("Database connection successful")
            return True
    except (SQLAlchemyError, OSError) as e:
        print_error(f"Database connection failed: {e}")
        return False


async def init_database() -> bool:
    """Create every table that does not exist yet."""
    from patient_records.models.base import create_tables

    if not await check_database():
        return False
    try:
        await create_tables()
    except SQLAlchemyError as e:
        print_error(f"Failed to create tables: {e}")
        return False
    print_success("Database tables are in place")
    return True


async def register_patient(full_name: str, age: str, gender: str) -> bool:
    from patient_records.models.base import async_session_maker
    from patient_records.services.records.identity import PatientIdentityResolver

    try:
        async with async_session_maker() as session:
            patient = await PatientIdentityResolver(session).register_patient(
                full_name, age, gender
            )
    except RecordsError as e:
        print_error(str(e))
        return False

    print_success("Patient registered")
    print_info(f"  Patient number: {patient.patient_number}")
    print_info(f"  Patient ID:     {patient.id}")
    return True


async def lookup_patient(patient_number: str) -> bool:
    from patient_records.models.base import async_session_maker
    from patient_records.services.records.identity import PatientIdentityResolver

    try:
        async with async_session_maker() as session:
            patient = await PatientIdentityResolver(session).find_patient_by_number(
                patient_number
            )
    except RecordsError as e:
        print_error(str(e))
        return False

    if patient is None:
        print_error(f"No patient with number '{patient_number.strip()}'")
        return False

    print_info(f"  Patient number: {patient.patient_number}")
    print_info(f"  Patient ID:     {patient.id}")
    print_info(f"  Name:           {patient.full_name}")
    print_info(f"  Age:            {patient.age}")
    print_info(f"  Gender:         {patient.gender}")
    return True


def cmd_version(_args: argparse.Namespace) -> int:
    """Show version information."""
    print_banner()
    print(f"Version:     {settings.app_version}")
    print(f"Environment: {settings.environment}")
    print(f"Debug:       {settings.debug}")
    print(f"Python:      {sys.version.split()[0]}")
    return 0


def cmd_check_db(_args: argparse.Namespace) -> int:
    print_banner()
    return 0 if asyncio.run(check_database()) else 1


def cmd_init_db(_args: argparse.Namespace) -> int:
    print_banner()
    return 0 if asyncio.run(init_database()) else 1


def cmd_register(args: argparse.Namespace) -> int:
    return 0 if asyncio.run(register_patient(args.name, args.age, args.gender)) else 1


def cmd_lookup(args: argparse.Namespace) -> int:
    return 0 if asyncio.run(lookup_patient(args.patient_number)) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patient-records",
        description="Patient Records CLI - Administrative command line interface",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"Patient Records {settings.app_version}",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.set_defaults(func=cmd_version)

    check_db_parser = subparsers.add_parser("check-db", help="Check database connectivity")
    check_db_parser.set_defaults(func=cmd_check_db)

    init_db_parser = subparsers.add_parser("init-db", help="Create any missing tables")
    init_db_parser.set_defaults(func=cmd_init_db)

    register_parser = subparsers.add_parser("register", help="Register a patient")
    register_parser.add_argument("--name", "-n", required=True, help="Full name")
    # Kept as text; the resolver validates range and format
    register_parser.add_argument("--age", "-a", required=True, help="Age in whole years")
    register_parser.add_argument(
        "--gender",
        "-g",
        required=True,
        choices=GENDER_CHOICES,
        help="Gender",
    )
    register_parser.set_defaults(func=cmd_register)

    lookup_parser = subparsers.add_parser("lookup", help="Find a patient by patient number")
    lookup_parser.add_argument("patient_number", help="Exact patient number")
    lookup_parser.set_defaults(func=cmd_lookup)

    return parser


def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
