import configparser
import unittest
from unittest.mock import MagicMock, patch

from production_planner.config import config
from production_planner.db.interface import SupabaseInterface


class TestConfig(unittest.TestCase):

    def use_settings(self, text):
        parser = configparser.ConfigParser(interpolation=None)
        parser.read_string(text)
        patcher = patch.object(config, '_config', parser)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_waste_thresholds(self):
        self.use_settings("[WASTE]\noverproduction_warning_ratio = 0.5\nlow_waste_day_ratio = lots\n")

        self.assertEqual(config.waste_config, {
            'overproduction_warning_ratio': 0.5,
            'time_period_warning_ratio': 0.40,
            'low_waste_day_ratio': 0.30,
        })

    def test_supabase_page_size(self):
        self.use_settings("[SUPABASE]\npage_size = 250\n")

        self.assertEqual(config.supabase_page_size, 250)
        self.assertEqual(SupabaseInterface(MagicMock()).page_size, 250)
        self.assertEqual(SupabaseInterface(MagicMock(), page_size=10).page_size, 10)

    def test_page_size_default(self):
        self.use_settings("")

        self.assertEqual(config.supabase_page_size, 1000)


if __name__ == '__main__':
    unittest.main()
