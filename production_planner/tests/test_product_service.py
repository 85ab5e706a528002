"""
Tests for product catalog maintenance.
"""
import unittest
from unittest.mock import MagicMock

from production_planner.services.product_service import ProductService
from production_planner.exceptions import ValidationError, NotFoundError
from production_planner.tests.helpers import make_interface


class TestProductService(unittest.TestCase):
    """Test cases for ProductService."""

    def setUp(self):
        self.session, self.interface = make_interface()
        self.service = ProductService(self.interface)
        self.soda = self.service.create_product(
            ' Soda ', '0.50', '1.50', category='Other', department='Soft Drinks',
            shelf_life='48', prep_time=''
        )
        self.session.commit()

    def tearDown(self):
        self.session.close()

    def test_create_converts_fields(self):
        self.assertEqual(self.soda['name'], 'Soda')
        self.assertEqual(self.soda['department'], 'Soft Drinks')
        self.assertEqual(self.soda['cost_price'], 0.5)
        self.assertEqual(self.soda['shelf_life'], 48.0)
        self.assertIsNone(self.soda['prep_time'])
        self.assertTrue(self.soda['active'])

    def test_department_defaults_to_deli(self):
        scone = self.service.create_product('Scone', 1.0, 2.5)

        self.assertEqual(scone['department'], 'Deli')
        self.assertEqual(scone['category'], 'Other')

    def test_create_rejects_sell_price_below_cost(self):
        with self.assertRaises(ValidationError) as context:
            self.service.create_product('Scone', 2.0, 1.0)

        self.assertEqual(context.exception.details['sell_price'],
                         'Sell price must be greater than cost price')

    def test_update_changes_only_given_fields(self):
        updated = self.service.update_product(
            self.soda['id'], sell_price='1.75', prep_time='5', storage_type=' Fridge '
        )

        self.assertEqual(updated['sell_price'], 1.75)
        self.assertEqual(updated['prep_time'], 5)
        self.assertEqual(updated['storage_type'], 'Fridge')
        stored = self.service.get_product(self.soda['id'])
        self.assertEqual(stored['sell_price'], 1.75)
        self.assertEqual(stored['name'], 'Soda')
        self.assertEqual(stored['department'], 'Soft Drinks')

    def test_update_is_validated_against_stored_values(self):
        with self.assertRaises(ValidationError) as context:
            self.service.update_product(self.soda['id'], cost_price=2)

        self.assertIn('sell_price', context.exception.details)
        self.assertEqual(self.service.get_product(self.soda['id'])['cost_price'], 0.5)

    def test_update_rejects_unknown_fields(self):
        with self.assertRaises(ValidationError) as context:
            self.service.update_product(self.soda['id'], active=False, id='other')

        self.assertEqual(set(context.exception.details), {'active', 'id'})

    def test_update_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.service.update_product('no-such-product', name='Cola')

    def test_deactivate_and_reactivate(self):
        self.service.deactivate_product(self.soda['id'])
        self.assertEqual(self.service.get_active_products(), [])
        self.assertEqual([p['name'] for p in self.service.get_all_products()], ['Soda'])

        self.service.reactivate_product(self.soda['id'])

        self.assertEqual([p['id'] for p in self.service.get_active_products()], [self.soda['id']])

    def test_reactivate_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.service.reactivate_product('no-such-product')

    def test_count_products(self):
        self.service.create_product('Cola', 0.5, 1.5, department='Soft Drinks')

        self.assertEqual(self.service.count_products('department', 'Soft Drinks'), 2)
        self.assertEqual(self.service.count_products('category', 'Bakery'), 0)

    def test_update_writes_converted_values(self):
        interface = MagicMock()
        interface.query.return_value = [dict(self.soda)]
        service = ProductService(interface)

        service.update_product(self.soda['id'], cost_price='0.75', name=' Cola ')

        interface.update.assert_called_once_with(
            'products', {'cost_price': 0.75, 'name': 'Cola'}, {'id': self.soda['id']}
        )


if __name__ == '__main__':
    unittest.main()
