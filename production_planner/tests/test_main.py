"""
Tests for the command line interface.
"""
import argparse
import io
import unittest
from contextlib import contextmanager, redirect_stdout, redirect_stderr
from unittest.mock import patch

from production_planner import main as cli
from production_planner.models import TimePeriod
from production_planner.services import (
    CategoryService, DepartmentService, PlanService, ProductService, WasteService
)
from production_planner.exceptions import StorageUnavailableError
from production_planner.tests.helpers import (
    make_interface, add_product, add_sales, TARGET_TUESDAY, TUESDAYS
)


class TestArgumentParsing(unittest.TestCase):

    def test_date_argument(self):
        self.assertEqual(cli.date_argument('2024-01-23'), TARGET_TUESDAY)
        with self.assertRaises(argparse.ArgumentTypeError):
            cli.date_argument('23/01/2024')

    def test_parse_override_argument(self):
        key, raw = cli.parse_override_argument('abc-123:Lunch=5')

        self.assertEqual(key, ('abc-123', TimePeriod.LUNCH))
        self.assertEqual(raw, '5')

    def test_override_quantity_is_kept_as_typed(self):
        _, raw = cli.parse_override_argument('abc:Breakfast=lots')
        self.assertEqual(raw, 'lots')

    def test_malformed_override(self):
        for value in ('abc=5', 'abc:Dinner=5', 'abc:Lunch'):
            with self.assertRaises(argparse.ArgumentTypeError, msg=value):
                cli.parse_override_argument(value)

    def test_forecast_parser(self):
        args = cli.build_parser().parse_args([
            'forecast', '--date', '2024-01-23', '--override', 'p1:Lunch=5', '--commit'
        ])

        self.assertEqual(args.date, TARGET_TUESDAY)
        self.assertEqual(args.override, [(('p1', TimePeriod.LUNCH), '5')])
        self.assertTrue(args.commit)
        self.assertIs(args.func, cli.forecast_command)


class TestCommands(unittest.TestCase):
    """Run commands against an in-memory database."""

    def setUp(self):
        self.session, self.interface = make_interface()
        self.soda = add_product(self.interface, 'Soda')
        add_sales(self.interface, self.soda['id'], 'Lunch', {day: 8 for day in TUESDAYS[:3]})
        self.session.commit()

        @contextmanager
        def scope():
            yield self.interface
            self.session.commit()

        patcher = patch.object(cli, 'interface_scope', scope)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.session.close()

    def run_cli(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out), redirect_stderr(io.StringIO()):
            code = cli.main(list(argv))
        return code, out.getvalue()

    def test_forecast_commit_with_override(self):
        code, output = self.run_cli(
            'forecast', '--date', '2024-01-23',
            '--override', f"{self.soda['id']}:Lunch=5", '--commit'
        )

        self.assertEqual(code, 0)
        self.assertIn('Soda', output)
        self.assertIn('Production plan saved: 1 entries', output)

        plan = PlanService(self.interface).get_plan(TARGET_TUESDAY)
        self.assertEqual(plan[0]['forecast_quantity'], 8)
        self.assertEqual(plan[0]['adjusted_quantity'], 5)

    def test_forecast_without_history(self):
        code, output = self.run_cli('forecast', '--date', '2024-03-01')

        self.assertEqual(code, 0)
        self.assertIn('No forecast data available', output)

    def test_show_plan(self):
        self.run_cli('forecast', '--date', '2024-01-23', '--commit')

        code, output = self.run_cli('show-plan', '--date', '2024-01-23')

        self.assertEqual(code, 0)
        self.assertIn('Total units: 8', output)

    def test_record_sale_duplicate_fails(self):
        code, _ = self.run_cli('record-sale', self.soda['id'], 'Lunch', '3', '--date', '2024-01-16')

        self.assertEqual(code, 1)

    def test_record_sale(self):
        code, output = self.run_cli('record-sale', self.soda['id'], 'Afternoon', '3', '--date', '2024-01-16')

        self.assertEqual(code, 0)
        self.assertIn('Recorded 3 Afternoon sales for 2024-01-16', output)

    def test_waste_summary_prints_patterns(self):
        WasteService(self.interface).record(self.soda['id'], '2024-01-16', 4, 'Overproduction')

        code, output = self.run_cli('waste-summary', '--date', '2024-01-17')

        self.assertEqual(code, 0)
        self.assertIn('Tuesday: Highest waste day this week (4.00)', output)
        self.assertIn('100% of waste is from overproduction - consider reducing forecast', output)

    def test_product_update_and_reactivate(self):
        code, output = self.run_cli(
            'product', 'update', self.soda['id'], '--sell-price', '3.25', '--department', 'Soft Drinks'
        )
        self.assertEqual(code, 0)
        self.assertIn('Updated product Soda', output)

        self.run_cli('product', 'deactivate', self.soda['id'])
        code, output = self.run_cli('product', 'reactivate', self.soda['id'])

        self.assertEqual(code, 0)
        product = ProductService(self.interface).get_product(self.soda['id'])
        self.assertEqual(product['sell_price'], 3.25)
        self.assertEqual(product['department'], 'Soft Drinks')
        self.assertTrue(product['active'])

    def test_product_add_and_list(self):
        code, _ = self.run_cli('product', 'add', 'Scone', '1.00', '2.50', '--category', 'Bakery')
        self.assertEqual(code, 0)

        code, output = self.run_cli('product', 'list')

        self.assertEqual(code, 0)
        self.assertIn('Scone', output)
        self.assertIn('Bakery', output)

    def test_product_update_rejects_bad_price(self):
        code, _ = self.run_cli('product', 'update', self.soda['id'], '--sell-price', '0.10')

        self.assertEqual(code, 1)

    def test_category_commands(self):
        code, output = self.run_cli('category', 'add', 'Drinks', '--color', 'cyan')
        self.assertEqual(code, 0)
        category = CategoryService(self.interface).find_by_name('drinks')

        code, _ = self.run_cli('category', 'add', 'DRINKS')
        self.assertEqual(code, 1)

        code, _ = self.run_cli('category', 'update', category['id'], '--inactive')
        self.assertEqual(code, 0)
        code, output = self.run_cli('category', 'list')
        self.assertNotIn('Drinks', output)

        code, _ = self.run_cli('category', 'delete', category['id'])
        self.assertEqual(code, 0)
        self.assertIsNone(CategoryService(self.interface).find_by_name('Drinks'))

    def test_department_in_use_cannot_be_deleted(self):
        department = DepartmentService(self.interface).create('Deli', 'blue')
        self.session.commit()

        code, _ = self.run_cli('department', 'delete', department['id'])

        self.assertEqual(code, 1)
        self.assertIsNotNone(DepartmentService(self.interface).find_by_name('Deli'))

    def test_storage_failure_exit_code(self):
        with patch.object(cli.ForecastService, 'generate_forecast',
                          side_effect=StorageUnavailableError("connection lost")):
            code, _ = self.run_cli('forecast', '--date', '2024-01-23')

        self.assertEqual(code, 1)


if __name__ == '__main__':
    unittest.main()
