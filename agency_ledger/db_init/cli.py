"""
Flask CLI Commands for Ledger Management
Run with: flask ledger init, flask ledger recalculate <account> <program>, etc.
"""

import click
from flask.cli import with_appcontext
from agency_ledger.db_init import init_database, clear_database, load_sample_data
from agency_ledger.db_init.init_db import reset_database
from agency_ledger.exceptions import LedgerError
from agency_ledger.extensions import db
from agency_ledger.services.program_pricing import PricingService
from agency_ledger.services.store import LedgerStore

@click.group()
def ledger_commands():
    """Booking ledger management commands"""
    pass


@ledger_commands.command('init')
@click.option('--no-sample-data', is_flag=True, help='Skip creating sample data')
@click.option('--account', default='demo-account', show_default=True, help='Account owning the sample data')
@with_appcontext
def init_db_command(no_sample_data, account):
    """Initialize the database with tables and optional sample data"""
    counts = init_database(with_sample_data=not no_sample_data, account_id=account)
    click.echo('Database initialized successfully!')
    for name, count in counts.items():
        click.echo(f'   - {name}: {count}')


@ledger_commands.command('reset')
@click.confirmation_option(prompt='This will delete all data. Are you sure?')
@click.option('--account', default='demo-account', show_default=True, help='Account owning the sample data')
@with_appcontext
def reset_db_command(account):
    """Reset the database (drop all tables and recreate with sample data)"""
    reset_database(account_id=account)
    click.echo('Database reset successfully!')


@ledger_commands.command('load-sample')
@click.option('--account', default='demo-account', show_default=True, help='Account owning the sample data')
@with_appcontext
def load_sample_command(account):
    """Add the sample program, pricing and bookings to an existing database"""
    counts = load_sample_data(account_id=account)
    click.echo('Sample data loaded!')
    for name, count in counts.items():
        click.echo(f'   - {name}: {count}')


@ledger_commands.command('clear')
@click.confirmation_option(prompt='This will delete all tables. Are you sure?')
@with_appcontext
def clear_db_command():
    """Clear all database tables"""
    clear_database()
    click.echo('Database cleared successfully!')


@ledger_commands.command('recalculate')
@click.argument('account')
@click.argument('program_id')
@with_appcontext
def recalculate_command(account, program_id):
    """Recompute base price, profit and balance of every booking of a program"""
    try:
        count = PricingService(LedgerStore(db.session)).recalculate_program(account, program_id)
    except LedgerError as e:
        raise click.ClickException(str(e))
    click.echo(f'Recalculated {count} bookings.')


def register_commands(app):
    """Register CLI commands with the Flask app"""
    app.cli.add_command(ledger_commands, name='ledger')
