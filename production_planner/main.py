"""
Command line interface for the Production Planner.

Records sales, generates the next-day production forecast, applies manual
overrides, commits the plan and prints it. Also summarizes waste and
maintains products, categories and departments.
"""
import argparse
import sys
from contextlib import contextmanager

from tabulate import tabulate

from production_planner.db import db, session_scope, get_interface
from production_planner.exceptions import PlannerError, StorageUnavailableError, ValidationError
from production_planner.logging_setup import logger, get_logger
from production_planner.models import TimePeriod, BADGE_COLORS
from production_planner.services import (
    CategoryService, DepartmentService, ForecastService, PlanService, ProductService,
    SalesService, WasteService
)
from production_planner.utils.date_utils import (
    convert_to_date, tomorrow, today, format_long_date, get_day_name
)

log = get_logger('cli')

@contextmanager
def interface_scope():
    """Yield a database interface; SQLAlchemy work runs in one transaction."""
    if db.db_type == "sqlalchemy":
        with session_scope() as session:
            yield get_interface(session)
    else:
        yield get_interface()

def date_argument(value):
    try:
        return convert_to_date(value)
    except ValidationError as e:
        raise argparse.ArgumentTypeError(e.message)

def parse_override_argument(value):
    """Parse PRODUCT_ID:TIME_PERIOD=QTY.

    The quantity is kept as typed; invalid quantities fall back to the
    forecast when the plan is built.
    """
    try:
        key, raw = value.split('=', 1)
        product_id, period = key.rsplit(':', 1)
        return (product_id, TimePeriod.from_string(period)), raw
    except (ValueError, ValidationError):
        raise argparse.ArgumentTypeError(
            f"Override must look like PRODUCT_ID:TIME_PERIOD=QTY, got {value!r}"
        )

def print_forecast(result):
    print(f"\nProduction Forecast for {format_long_date(result.target_date)}")
    print(f"Rolling 3-week average based on {get_day_name(result.target_date)} sales history")

    for period, items in result.by_time_period().items():
        if not items:
            continue

        table_data = []
        for item in items:
            trend = item.trend
            name = item.product_name
            if item.has_warning:
                plural = '' if item.weeks_of_data == 1 else 's'
                name += f"  (only {item.weeks_of_data} week{plural} of data)"
            table_data.append([
                name,
                item.forecast_quantity,
                '-' if trend is None else f"{trend:+d}",
                item.adjusted_quantity if item.adjusted_quantity is not None else '',
                item.final_quantity,
            ])

        print(f"\n{period.value.upper()} ({period.hours})")
        print(tabulate(table_data, headers=['Product', 'Forecast', 'vs Last Week', 'Override', 'Final']))

    summary = result.summary()
    print(f"\nTotal units: {summary['total_units']}  "
          f"Low-confidence items: {summary['low_confidence_items']}")

def forecast_command(args):
    """Generate the forecast, optionally commit it as the plan."""
    with interface_scope() as interface:
        service = ForecastService(interface)
        result = service.generate_forecast(args.date)

        if result.is_empty:
            print(result.message)
            log.info(result.message)
        else:
            items = service.apply_overrides(result.items, dict(args.override or []))
            result.items = items
            print_forecast(result)

        if args.commit:
            stored = PlanService(interface).commit_plan(result.target_date, result.items)
            print(f"\nProduction plan saved: {len(stored)} entries for {result.target_date}")

    return 0

def show_plan_command(args):
    """Print the committed plan for a date."""
    plan_date = args.date or tomorrow()
    with interface_scope() as interface:
        service = PlanService(interface)
        plan = service.get_plan(plan_date)
        summary = service.plan_summary(plan_date)

    if not plan:
        print(f"No production plan saved for {plan_date}")
        return 0

    print(f"\nProduction Plan for {format_long_date(plan_date)}")
    print(tabulate(
        [[entry['time_period'].value, entry['product_name'], entry['final_quantity']] for entry in plan],
        headers=['Time Period', 'Product', 'Quantity']
    ))
    print(f"\nTotal units: {summary['total_units']}")
    return 0

def record_sale_command(args):
    with interface_scope() as interface:
        entry = SalesService(interface).record(
            args.product_id, args.date or today(), args.time_period, args.quantity, update=args.update
        )
    print(f"Recorded {entry['quantity_sold']} {entry['time_period'].value} sales for {entry['sale_date']}")
    return 0

def waste_summary_command(args):
    with interface_scope() as interface:
        summary = WasteService(interface).weekly_summary(args.date or today())

    print(f"\nWaste for week starting {summary['week_start']}")
    print(f"Today: {summary['today_cost']:.2f}  Week: {summary['total_cost']:.2f} "
          f"({summary['total_units']} units)")
    if summary['top_products']:
        print(tabulate(
            [[p['product_name'], p['total_quantity'], f"{p['total_cost']:.2f}", p['primary_reason']]
             for p in summary['top_products']],
            headers=['Product', 'Units', 'Cost', 'Primary Reason']
        ))
    print("\nPatterns:")
    for pattern in summary['patterns']:
        print(f"  {'!' if pattern['warning'] else '-'} {pattern['message']}")
    return 0

PRODUCT_OPTIONS = (
    ('--name', 'name'),
    ('--category', 'category'),
    ('--department', 'department'),
    ('--cost-price', 'cost_price'),
    ('--sell-price', 'sell_price'),
    ('--shelf-life', 'shelf_life'),
    ('--prep-time', 'prep_time'),
    ('--storage-type', 'storage_type'),
)

def product_command(args):
    """Maintain the product catalog."""
    with interface_scope() as interface:
        service = ProductService(interface)

        if args.action == 'list':
            products = service.get_all_products() if args.all else service.get_active_products()
            print(tabulate(
                [[p['id'], p['name'], p['category'], p['department'], f"{p['cost_price']:.2f}",
                  f"{p['sell_price']:.2f}", 'yes' if p['active'] else 'no'] for p in products],
                headers=['ID', 'Name', 'Category', 'Department', 'Cost', 'Price', 'Active']
            ))
        elif args.action == 'add':
            product = service.create_product(
                args.product_name, args.cost, args.sell,
                category=args.category, department=args.department,
                shelf_life=args.shelf_life, prep_time=args.prep_time, storage_type=args.storage_type
            )
            print(f"Added product {product['name']} ({product['id']})")
        elif args.action == 'update':
            changes = {
                field: getattr(args, field) for _, field in PRODUCT_OPTIONS
                if getattr(args, field) is not None
            }
            product = service.update_product(args.product_id, **changes)
            print(f"Updated product {product['name']}")
        elif args.action == 'deactivate':
            service.deactivate_product(args.product_id)
            print(f"Deactivated product {args.product_id}")
        else:
            service.reactivate_product(args.product_id)
            print(f"Reactivated product {args.product_id}")

    return 0

def label_command(args):
    """Maintain categories or departments."""
    with interface_scope() as interface:
        service = args.service_class(interface)
        kind = service.KIND.lower()

        if args.action == 'list':
            print(tabulate(
                [[label['id'], label['name'], label['color'], 'yes' if label['active'] else 'no']
                 for label in service.list(active_only=not args.all)],
                headers=['ID', 'Name', 'Color', 'Active']
            ))
        elif args.action == 'add':
            label = service.create(args.label_name, args.color)
            print(f"Added {kind} {label['name']} ({label['id']})")
        elif args.action == 'update':
            label = service.update(args.label_id, name=args.name, color=args.color, active=args.active)
            print(f"Updated {kind} {label['name']}")
        else:
            service.delete(args.label_id)
            print(f"Deleted {kind} {args.label_id}")

    return 0

def setup_db_command(args):
    from production_planner.scripts.setup_db import setup_database
    return 0 if setup_database(args.drop) else 1

def build_parser():
    parser = argparse.ArgumentParser(description='Production Planner')
    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    setup_parser = subparsers.add_parser('setup-db', help='Create database tables')
    setup_parser.add_argument('--drop', action='store_true', help='Drop existing tables first')
    setup_parser.set_defaults(func=setup_db_command)

    sale_parser = subparsers.add_parser('record-sale', help='Record units sold')
    sale_parser.add_argument('product_id', type=str)
    sale_parser.add_argument('time_period', type=str, choices=[p.value for p in TimePeriod])
    sale_parser.add_argument('quantity', type=str)
    sale_parser.add_argument('--date', type=date_argument, help='Sale date (YYYY-MM-DD), default today')
    sale_parser.add_argument('--update', action='store_true', help='Overwrite an existing entry')
    sale_parser.set_defaults(func=record_sale_command)

    forecast_parser = subparsers.add_parser('forecast', help='Generate the production forecast')
    forecast_parser.add_argument('--date', type=date_argument, help='Plan date (YYYY-MM-DD), default tomorrow')
    forecast_parser.add_argument('--override', type=parse_override_argument, action='append',
                                 metavar='PRODUCT_ID:TIME_PERIOD=QTY', help='Manual override')
    forecast_parser.add_argument('--commit', action='store_true', help='Save as the production plan')
    forecast_parser.set_defaults(func=forecast_command)

    plan_parser = subparsers.add_parser('show-plan', help='Print a saved production plan')
    plan_parser.add_argument('--date', type=date_argument, help='Plan date (YYYY-MM-DD), default tomorrow')
    plan_parser.set_defaults(func=show_plan_command)

    waste_parser = subparsers.add_parser('waste-summary', help='Weekly waste summary')
    waste_parser.add_argument('--date', type=date_argument, help='Reference date, default today')
    waste_parser.set_defaults(func=waste_summary_command)

    product_parser = subparsers.add_parser('product', help='Manage products')
    product_actions = product_parser.add_subparsers(dest='action')
    product_actions.required = True

    list_parser = product_actions.add_parser('list', help='List products')
    list_parser.add_argument('--all', action='store_true', help='Include inactive products')

    add_parser = product_actions.add_parser('add', help='Add a product')
    add_parser.add_argument('product_name', type=str)
    add_parser.add_argument('cost', type=str, help='Cost price')
    add_parser.add_argument('sell', type=str, help='Sell price')
    add_parser.add_argument('--category', type=str, default='Other')
    add_parser.add_argument('--department', type=str, default='Deli')
    add_parser.add_argument('--shelf-life', type=str, help='Hours')
    add_parser.add_argument('--prep-time', type=str, help='Minutes')
    add_parser.add_argument('--storage-type', type=str)

    update_parser = product_actions.add_parser('update', help='Edit a product')
    update_parser.add_argument('product_id', type=str)
    for option, field in PRODUCT_OPTIONS:
        update_parser.add_argument(option, dest=field, type=str)

    for action in ('deactivate', 'reactivate'):
        product_actions.add_parser(action, help=f'{action.capitalize()} a product').add_argument(
            'product_id', type=str
        )
    product_parser.set_defaults(func=product_command)

    for name, service_class in (('category', CategoryService), ('department', DepartmentService)):
        label_parser = subparsers.add_parser(name, help=f'Manage {service_class.TABLE}')
        label_actions = label_parser.add_subparsers(dest='action')
        label_actions.required = True

        list_parser = label_actions.add_parser('list', help=f'List {service_class.TABLE}')
        list_parser.add_argument('--all', action='store_true', help='Include inactive entries')

        add_parser = label_actions.add_parser('add', help=f'Add a {name}')
        add_parser.add_argument('label_name', type=str)
        add_parser.add_argument('--color', type=str, default='gray', choices=BADGE_COLORS)

        update_parser = label_actions.add_parser('update', help=f'Edit a {name}')
        update_parser.add_argument('label_id', type=str)
        update_parser.add_argument('--name', type=str)
        update_parser.add_argument('--color', type=str, choices=BADGE_COLORS)
        update_parser.add_argument('--active', dest='active', action='store_true', default=None)
        update_parser.add_argument('--inactive', dest='active', action='store_false')

        delete_parser = label_actions.add_parser('delete', help=f'Delete an unused {name}')
        delete_parser.add_argument('label_id', type=str)

        label_parser.set_defaults(func=label_command, service_class=service_class)

    return parser

def main(argv=None):
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    try:
        return args.func(args)
    except StorageUnavailableError as e:
        logger.log_exception('cli', e, "Storage unavailable, nothing was saved; try again")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except PlannerError as e:
        log.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        if e.details:
            print(f"Details: {e.details}", file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(main())
