# Overview: Flask CLI command groups for bootstrap, demo data and stock inspection.

# backend/shopflow/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Bootstrap:
# - python -m flask shops init-db
#   Create all tables (use `flask db upgrade` for migrated deployments).
# - python -m flask shops reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Shop management (MULTI-TENANT):
# - python -m flask shops list
#   List all shops.
# - python -m flask shops create --name "Corner Shop" --code "CORNER" [--tax-rate-bps 800] [--currency USD]
#   Create a new shop (tenant).
# - python -m flask shops seed-demo --shop-id 1
#   Add a demo category, products and a customer to a shop.
#
# Stock inspection:
# - python -m flask shops low-stock --shop-id 1
#   List products at or below their low-stock threshold.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Shop
from .money import format_cents
from .services import catalog_service, customer_service
from .validation import ConflictError


@click.group('shops')
def shops_group():
    """Shop bootstrap, demo data and stock inspection commands."""


@shops_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@shops_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask shops create' next.")


@shops_group.command('list')
@with_appcontext
def list_shops():
    """List all shops."""
    shops = db.session.query(Shop).order_by(Shop.id).all()

    if not shops:
        click.echo("No shops found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active':<8} {'Tax bps':<8} {'Currency'}")
    click.echo("="*80)

    for shop in shops:
        active_str = "Yes" if shop.is_active else "No"
        click.echo(
            f"{shop.id:<5} {shop.name:<30} {shop.code or '-':<15} {active_str:<8} {shop.tax_rate_bps:<8} {shop.currency}"
        )

    click.echo("="*80 + "\n")


@shops_group.command('create')
@click.option('--name', required=True, help='Shop name')
@click.option('--code', required=True, help='Short code (unique)')
@click.option('--tax-rate-bps', type=int, default=None, help='Tax rate in basis points (800 = 8%)')
@click.option('--currency', default=None, help='ISO currency code')
@with_appcontext
def create_shop_cli(name, code, tax_rate_bps, currency):
    """Create a new shop (tenant)."""
    existing = db.session.query(Shop).filter_by(code=code).first()
    if existing:
        click.echo(f"FAIL Shop with code '{code}' already exists")
        return

    if tax_rate_bps is None:
        tax_rate_bps = current_app.config["DEFAULT_TAX_RATE_BPS"]
    if tax_rate_bps < 0:
        click.echo("FAIL --tax-rate-bps must be >= 0")
        return

    shop = Shop(
        name=name,
        code=code,
        tax_rate_bps=tax_rate_bps,
        currency=currency or current_app.config["DEFAULT_CURRENCY"],
        is_active=True,
    )
    db.session.add(shop)
    db.session.commit()

    click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id}, Code: {shop.code})")


DEMO_PRODUCTS = [
    {"name": "Espresso Beans 1kg", "code": "BEAN-1KG", "sales_price_cents": 1000, "quantity": 40},
    {"name": "Oat Milk 1L", "code": "OAT-1L", "sales_price_cents": 350, "quantity": 8},
    {
        "name": "Logo T-Shirt",
        "code": "TEE-LOGO",
        "sales_price_cents": 1800,
        "quantity": 12,
        "variants": [
            {"name": "Size L", "value": "L", "additional_price_cents": 0},
            {"name": "Size XL", "value": "XL", "additional_price_cents": 200},
        ],
    },
]


@shops_group.command('seed-demo')
@click.option('--shop-id', type=int, required=True, help='Shop ID')
@with_appcontext
def seed_demo(shop_id):
    """Add a demo category, products and a customer to a shop."""
    try:
        catalog_service.require_shop(shop_id)
    except catalog_service.CatalogError:
        click.echo(f"FAIL Shop ID {shop_id} not found")
        return

    try:
        category = catalog_service.create_category(shop_id, "Demo")
        click.echo(f"PASS Created category: {category.name} (ID: {category.id})")
        category_id = category.id
    except ConflictError:
        click.echo("WARN  Category 'Demo' already exists, reusing...")
        category_id = next(c.id for c in catalog_service.list_categories(shop_id) if c.name == "Demo")

    for item in DEMO_PRODUCTS:
        try:
            product = catalog_service.create_product(shop_id, dict(item, category_id=category_id))
            click.echo(f"PASS Created product: {product.name} x{product.quantity}")
        except ConflictError:
            click.echo(f"WARN  Product '{item['code']}' already exists, skipping...")

    try:
        customer = customer_service.create_customer(shop_id, name="Demo Customer", email="demo@shopflow.local")
        click.echo(f"PASS Created customer: {customer.name} (ID: {customer.id})")
    except ConflictError:
        click.echo("WARN  Demo customer already exists, skipping...")


@shops_group.command('low-stock')
@click.option('--shop-id', type=int, required=True, help='Shop ID')
@with_appcontext
def low_stock(shop_id):
    """List products at or below their low-stock threshold."""
    try:
        shop = catalog_service.require_shop(shop_id)
    except catalog_service.CatalogError:
        click.echo(f"FAIL Shop ID {shop_id} not found")
        return

    products = catalog_service.list_low_stock(shop_id)
    if not products:
        click.echo("No low-stock products.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<6} {'Name':<34} {'Qty':<6} {'Threshold':<10} {'Price'}")
    click.echo("="*80)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name[:34]:<34} {p.quantity:<6} {p.low_stock_threshold:<10} "
            f"{format_cents(p.sales_price_cents, shop.currency)}"
        )
    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(shops_group)
