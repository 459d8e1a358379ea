import click
from flask.cli import with_appcontext

from app import db
from models import Barangay, Municipality, User

MUNICIPALITIES = [
    ('San Isidro', 'SI', [
        'Alegria', 'Balite', 'Buenavista', 'Caglanipao', 'Happy Valley',
        'Mabuhay', 'Palanit', 'Poblacion Norte', 'Salvacion', 'San Juan',
        'San Isidro', 'San Roque', 'Seven Hills', 'Veriato',
    ]),
    ('Victoria', 'VIC', [
        'Acedillo', 'Buenasuerte', 'Buenos Aires', 'Colab-og', 'Erenas',
        'Libertad', 'Luisita', 'Lungib', 'Maxvilla', 'Pasabuena',
        'San Lazaro', 'San Miguel', 'San Roman', 'Zone I', 'Zone II', 'Zone III',
    ]),
    # Allen and Lavezares lists are partial
    ('Allen', 'ALL', ['Poblacion 1', 'Poblacion 2', 'Poblacion 3', 'Poblacion 4', 'Poblacion 5']),
    ('Lavezares', 'LAV', ['Poblacion 1', 'Poblacion 2', 'Poblacion 3', 'Poblacion 4', 'Poblacion 5']),
    ('Rosario', 'ROS', [
        'Aguada', 'Bantolinao', 'Buenavista', 'Commonwealth', 'Guindaulan',
        'Jamoog', 'Kailingan', 'Ligaya', 'Poblacion (Estillero)', 'Salhag', 'San Lorenzo',
    ]),
]


def seed_locations():
    """Insert municipalities and barangays that are not there yet; returns rows added."""
    added = 0
    for name, code, barangays in MUNICIPALITIES:
        municipality = Municipality.query.filter_by(code=code).first()
        if municipality is None:
            municipality = Municipality(name=name, code=code)
            db.session.add(municipality)
            db.session.flush()
            added += 1
        for index, barangay_name in enumerate(barangays, start=1):
            barangay_code = f'{code}-{index:02d}'
            if Barangay.query.filter_by(municipality_id=municipality.id, code=barangay_code).first():
                continue
            db.session.add(Barangay(municipality_id=municipality.id, name=barangay_name, code=barangay_code))
            added += 1
    db.session.commit()
    return added


@click.command('seed')
@click.option('--admin-email', default=None, help='Also create a super_admin account with this email.')
@click.option('--admin-password', default=None, help='Password for the super_admin account.')
@with_appcontext
def seed_command(admin_email, admin_password):
    """Load municipalities, barangays and optionally a super admin."""
    added = seed_locations()
    click.echo(f'Seeded {added} location row(s).')

    if admin_email:
        if not admin_password:
            raise click.UsageError('--admin-password is required with --admin-email')
        if User.query.filter_by(email=admin_email).first():
            click.echo(f'User {admin_email} already exists.')
            return
        admin = User(
            username=admin_email.split('@')[0],
            email=admin_email,
            full_name='Super Administrator',
            role='super_admin',
        )
        admin.set_password(admin_password)
        db.session.add(admin)
        db.session.commit()
        click.echo(f'Created super_admin {admin_email}.')
