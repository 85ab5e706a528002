"""
Tests for the database interfaces: error mapping and the Supabase request chain.
"""
import unittest
from datetime import date
from unittest.mock import MagicMock, call

from sqlalchemy.exc import OperationalError

from production_planner.db.interface import (
    SQLAlchemyInterface, SupabaseInterface, get_interface
)
from production_planner.exceptions import (
    ConstraintViolationError, DatabaseError, StorageUnavailableError
)
from production_planner.models import TimePeriod
from production_planner.tests.helpers import make_interface


class TestSQLAlchemyInterface(unittest.TestCase):
    """Test cases for SQLAlchemyInterface."""

    def setUp(self):
        self.session, self.interface = make_interface()

    def tearDown(self):
        self.session.close()

    def test_insert_and_query_plain_values(self):
        product = self.interface.insert('products', [{
            'name': 'Soda', 'cost_price': 0.5, 'sell_price': 1.5, 'active': True
        }])[0]
        self.interface.insert('sales_data', [{
            'product_id': product['id'],
            'sale_date': date(2024, 1, 16),
            'time_period': TimePeriod.LUNCH,
            'quantity_sold': 3,
        }])

        rows = self.interface.query('sales_data', filters={'time_period': 'Lunch'})

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['time_period'], 'Lunch')
        self.assertEqual(rows[0]['sale_date'], date(2024, 1, 16))

    def test_unique_violation_maps_to_constraint_error(self):
        product = self.interface.insert('products', [{
            'name': 'Soda', 'cost_price': 0.5, 'sell_price': 1.5, 'active': True
        }])[0]
        row = {
            'product_id': product['id'],
            'sale_date': date(2024, 1, 16),
            'time_period': 'Lunch',
            'quantity_sold': 3,
        }
        self.session.commit()
        self.interface.insert('sales_data', [row])

        with self.assertRaises(ConstraintViolationError):
            self.interface.insert('sales_data', [dict(row)])

    def test_foreign_keys_are_enforced(self):
        with self.assertRaises(ConstraintViolationError):
            self.interface.insert('sales_data', [{
                'product_id': 'no-such-product',
                'sale_date': date(2024, 1, 16),
                'time_period': 'Lunch',
                'quantity_sold': 3,
            }])

    def test_unknown_table(self):
        with self.assertRaises(DatabaseError):
            self.interface.query('nope')

    def test_operational_error_maps_to_storage_unavailable(self):
        session = MagicMock()
        session.query.side_effect = OperationalError('SELECT 1', {}, Exception('database is locked'))
        interface = SQLAlchemyInterface(session)

        with self.assertRaises(StorageUnavailableError):
            interface.query('products')

        session.rollback.assert_called_once()


class TestSupabaseInterface(unittest.TestCase):
    """Test cases for SupabaseInterface with a mocked client."""

    def setUp(self):
        self.client = MagicMock()
        self.table = self.client.table.return_value
        self.interface = SupabaseInterface(self.client, page_size=1000)

    def test_query_builds_request(self):
        request = self.table.select.return_value
        request.eq.return_value = request
        request.gte.return_value = request
        request.lte.return_value = request
        request.order.return_value = request
        request.range.return_value = request
        request.execute.return_value = MagicMock(
            data=[{'id': '1', 'sale_date': '2024-01-16', 'time_period': 'Lunch'}], error=None
        )

        rows = self.interface.query(
            'sales_data',
            filters={'time_period': TimePeriod.LUNCH},
            ranges={'sale_date': (date(2023, 12, 26), date(2024, 1, 22))},
            order_by='sale_date',
            descending=True
        )

        self.client.table.assert_called_with('sales_data')
        request.eq.assert_called_once_with('time_period', 'Lunch')
        request.gte.assert_called_once_with('sale_date', '2023-12-26')
        request.lte.assert_called_once_with('sale_date', '2024-01-22')
        request.order.assert_any_call('sale_date', desc=True)
        request.order.assert_any_call('id')
        request.range.assert_called_once_with(0, 999)
        self.assertEqual(rows[0]['sale_date'], date(2024, 1, 16))

    def test_query_fetches_every_page(self):
        interface = SupabaseInterface(self.client, page_size=2)
        request = self.table.select.return_value
        request.order.return_value = request
        request.range.return_value = request
        request.execute.side_effect = [
            MagicMock(data=[{'id': '1'}, {'id': '2'}], error=None),
            MagicMock(data=[{'id': '3'}], error=None),
        ]

        rows = interface.query('products', order_by='name')

        self.assertEqual([row['id'] for row in rows], ['1', '2', '3'])
        self.assertEqual(request.range.call_args_list, [call(0, 1), call(2, 3)])

    def test_query_stops_at_limit(self):
        interface = SupabaseInterface(self.client, page_size=5)
        request = self.table.select.return_value
        request.order.return_value = request
        request.range.return_value = request
        request.execute.return_value = MagicMock(data=[{'id': '1'}], error=None)

        rows = interface.query('products', filters={}, limit=1)

        self.assertEqual(len(rows), 1)
        request.range.assert_called_once_with(0, 0)

    def test_list_filter_uses_in(self):
        request = self.table.select.return_value
        request.in_.return_value = request
        request.order.return_value = request
        request.range.return_value = request
        request.execute.return_value = MagicMock(data=[], error=None)

        self.interface.query('products', filters={'id': ['a', 'b']})

        request.in_.assert_called_once_with('id', ['a', 'b'])

    def test_insert_serializes_dates(self):
        request = self.table.insert.return_value
        request.execute.return_value = MagicMock(data=[{'id': '1', 'plan_date': '2024-01-23'}], error=None)

        rows = self.interface.insert('production_plans', [{'plan_date': date(2024, 1, 23)}])

        self.table.insert.assert_called_once_with([{'plan_date': '2024-01-23'}])
        self.assertEqual(rows[0]['plan_date'], date(2024, 1, 23))

    def test_unique_violation(self):
        error = Exception('duplicate key value violates unique constraint')
        error.code = '23505'
        self.table.insert.return_value.execute.side_effect = error

        with self.assertRaises(ConstraintViolationError):
            self.interface.insert('sales_data', [{'quantity_sold': 1}])

    def test_any_integrity_violation_maps_to_constraint_error(self):
        error = Exception('new row violates check constraint')
        error.code = '23514'
        self.table.update.return_value.eq.return_value.execute.side_effect = error

        with self.assertRaises(ConstraintViolationError):
            self.interface.update('sales_data', {'quantity_sold': 0}, {'id': '1'})

    def test_other_database_error_is_unavailable(self):
        error = Exception('permission denied')
        error.code = '42501'
        self.table.insert.return_value.execute.side_effect = error

        with self.assertRaises(StorageUnavailableError):
            self.interface.insert('sales_data', [{'quantity_sold': 1}])

    def test_network_failure(self):
        self.table.insert.return_value.execute.side_effect = ConnectionError('unreachable')

        with self.assertRaises(StorageUnavailableError):
            self.interface.insert('sales_data', [{'quantity_sold': 1}])

    def test_replace_rows_calls_server_function(self):
        self.client.rpc.return_value.execute.return_value = MagicMock(
            data=[{'id': '1', 'plan_date': '2024-01-23', 'time_period': 'Lunch'}], error=None
        )

        rows = self.interface.replace_rows(
            'production_plans',
            {'plan_date': date(2024, 1, 23)},
            [{'product_id': 'soda', 'time_period': TimePeriod.LUNCH, 'forecast_quantity': 8,
              'adjusted_quantity': None}]
        )

        self.client.rpc.assert_called_once_with('replace_production_plans', {
            'p_scope': {'plan_date': '2024-01-23'},
            'p_rows': [{
                'product_id': 'soda', 'time_period': 'Lunch', 'forecast_quantity': 8,
                'adjusted_quantity': None, 'plan_date': '2024-01-23',
            }],
        })
        self.assertEqual(rows[0]['plan_date'], date(2024, 1, 23))

    def test_replace_rows_failure(self):
        self.client.rpc.return_value.execute.side_effect = TimeoutError('timed out')

        with self.assertRaises(StorageUnavailableError):
            self.interface.replace_rows('production_plans', {'plan_date': date(2024, 1, 23)}, [])

    def test_replace_rows_unsupported_table(self):
        with self.assertRaises(DatabaseError):
            self.interface.replace_rows('sales_data', {}, [])


class TestGetInterface(unittest.TestCase):

    def test_session_gives_sqlalchemy_interface(self):
        self.assertIsInstance(get_interface(MagicMock()), SQLAlchemyInterface)

    def test_supabase_connection(self):
        connection = MagicMock(db_type='supabase')

        interface = get_interface(connection=connection)

        self.assertIsInstance(interface, SupabaseInterface)
        self.assertIs(interface.client, connection.get_supabase.return_value)

    def test_sqlalchemy_without_session(self):
        with self.assertRaises(DatabaseError):
            get_interface(connection=MagicMock(db_type='sqlalchemy'))


if __name__ == '__main__':
    unittest.main()
