import os
import configparser
from pathlib import Path

class Config:
    """Configuration manager for the Production Planner."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_path = Path(os.getenv('PLANNER_CONFIG', 'config/settings.ini'))
        self._config_dir = self._config_path.parent
        self._config = configparser.ConfigParser(interpolation=None)

        # Create config directory if it doesn't exist
        if not self._config_dir.exists():
            self._config_dir.mkdir(parents=True)

        # Load config or create default
        if self._config_path.exists():
            self._config.read(self._config_path)
        else:
            self._create_default_config()

        self._initialized = True

    def _create_default_config(self):
        """Create default configuration file."""
        self._config['DATABASE'] = {
            'type': 'sqlalchemy',
            'url': 'sqlite:///production_planner.db',
            'echo': 'False',
            'pool_size': '5',
            'max_overflow': '10',
            'pool_timeout': '30',
            'pool_recycle': '1800'
        }

        self._config['SUPABASE'] = {
            'url': '',
            'key': '',
            'page_size': '1000'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'True',
            'file_output': 'True'
        }

        self._config['FORECAST'] = {
            'lookback_days': '28',
            'max_weeks': '3',
            'min_weeks_for_confidence': '3'
        }

        self._config['WASTE'] = {
            'overproduction_warning_ratio': '0.30',
            'time_period_warning_ratio': '0.40',
            'low_waste_day_ratio': '0.30'
        }

        self._save_config()

    def _save_config(self):
        """Save configuration to file."""
        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    @property
    def db_type(self):
        """Storage backend: 'sqlalchemy' or 'supabase'."""
        db_type = self.get('DATABASE', 'type', 'sqlalchemy').lower()
        # Strip inline comments
        return db_type.split('#')[0].strip()

    def get_db_url(self):
        """Get the SQLAlchemy database URL."""
        return os.getenv('PLANNER_DATABASE_URL') or self.get(
            'DATABASE', 'url', 'sqlite:///production_planner.db'
        )

    @property
    def supabase_config(self):
        """Get Supabase connection settings; environment variables win."""
        if os.getenv('SUPABASE_URL') and os.getenv('SUPABASE_KEY'):
            return {
                'url': os.getenv('SUPABASE_URL'),
                'key': os.getenv('SUPABASE_KEY')
            }

        return {
            'url': self.get('SUPABASE', 'url', ''),
            'key': self.get('SUPABASE', 'key', '')
        }

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True),
            'file_output': self.get_boolean('LOGGING', 'file_output', True)
        }

    @property
    def forecast_config(self):
        """Get forecasting parameters."""
        return {
            'lookback_days': self.get_int('FORECAST', 'lookback_days', 28),
            'max_weeks': self.get_int('FORECAST', 'max_weeks', 3),
            'min_weeks_for_confidence': self.get_int('FORECAST', 'min_weeks_for_confidence', 3)
        }

    @property
    def waste_config(self):
        """Thresholds for waste pattern warnings, as shares of the week's waste."""
        return {
            'overproduction_warning_ratio': self.get_float('WASTE', 'overproduction_warning_ratio', 0.30),
            'time_period_warning_ratio': self.get_float('WASTE', 'time_period_warning_ratio', 0.40),
            'low_waste_day_ratio': self.get_float('WASTE', 'low_waste_day_ratio', 0.30)
        }

    @property
    def supabase_page_size(self):
        """Rows fetched per request; PostgREST caps a select at 1000 by default."""
        return self.get_int('SUPABASE', 'page_size', 1000)

# Global config instance
config = Config()
