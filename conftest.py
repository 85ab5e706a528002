import os
import tempfile
from pathlib import Path

# Point configuration at a throwaway settings file before production_planner
# is imported, so test runs never write config/ or logs/ into the checkout.
_config_dir = Path(tempfile.mkdtemp(prefix='production_planner_'))
_settings = _config_dir / 'settings.ini'
_settings.write_text(
    "[DATABASE]\n"
    "type = sqlalchemy\n"
    "url = sqlite://\n"
    "\n"
    "[LOGGING]\n"
    "level = DEBUG\n"
    "directory = " + str(_config_dir / 'logs') + "\n"
    "console_output = False\n"
    "file_output = False\n"
    "\n"
    "[FORECAST]\n"
    "lookback_days = 28\n"
    "max_weeks = 3\n"
    "min_weeks_for_confidence = 3\n"
)
os.environ['PLANNER_CONFIG'] = str(_settings)
