"""
Utility functions for the elder-care survey dashboard

Common functions used by the pipeline, the API and the database scripts:
logging setup, YAML configuration, and tabular file loading.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "reconciliation.yaml"


def load_yaml_config(config_path: Union[str, Path]) -> dict:
    """
    Load a YAML configuration file

    Args:
        config_path: Path to YAML file

    Returns:
        Dictionary from YAML file

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If file is not valid YAML
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            config = yaml.safe_load(f)
            return config if config else {}
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML: {e}")


def save_yaml_config(data: dict, config_path: Union[str, Path]):
    """
    Save a dictionary as a YAML file

    Args:
        data: Dictionary to save
        config_path: Where to save the file
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def get_project_root() -> Path:
    """
    Get the project root directory

    Returns:
        Path to project root
    """
    # Assumes this file is in infrastructure/utilities/
    return Path(__file__).parent.parent.parent


def default_config_path() -> Path:
    return get_project_root() / "config" / DEFAULT_CONFIG_NAME


def load_settings(config_path: Optional[Union[str, Path]] = None) -> dict:
    """
    Load the reconciliation settings, falling back to empty defaults.

    An explicitly given path must exist; the default path is optional.
    """
    if config_path is not None:
        return load_yaml_config(config_path)

    path = default_config_path()
    if not path.exists():
        logger.debug(f"No config at {path}; using defaults")
        return {}
    return load_yaml_config(path)


def solitary_estimates_from(settings: dict) -> Dict[str, int]:
    """Region -> estimated solitary elder population from the settings."""
    care = settings.get('care_burden') or {}
    return dict(care.get('solitary_elder_estimates') or {})


def database_url_from(settings: dict) -> Optional[str]:
    """Database URL from the settings, or None when unset or blank."""
    database = settings.get('database') or {}
    url = database.get('url')
    if url is None:
        return None
    return str(url).strip() or None


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Set up logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to write logs to

    Returns:
        Configured logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


def format_number(value: Union[int, float], decimals: int = 0) -> str:
    """
    Format a number with thousands separators

    Examples:
        >>> format_number(1234567)
        '1,234,567'
        >>> format_number(1234.567, 2)
        '1,234.57'
    """
    if pd.isna(value):
        return "N/A"

    return f"{value:,.{decimals}f}"


class DataProcessor:
    """
    Base class for file-based data handling

    Loads survey sheets and rosters from CSV, Excel, Parquet, JSON or
    YAML, and saves result tables.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize processor

        Args:
            config_path: Path to configuration file
        """
        self.config = {}
        if config_path:
            self.config = load_yaml_config(config_path)

        self.logger = logging.getLogger(self.__class__.__name__)

    def load_data(self, file_path: Path) -> pd.DataFrame:
        """
        Load a tabular file

        Args:
            file_path: Path to data file

        Returns:
            DataFrame with loaded data

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the suffix is not supported
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Input file not found: {file_path}")

        self.logger.info(f"Loading data from {file_path}")

        if file_path.suffix == '.csv':
            df = pd.read_csv(file_path, low_memory=False, dtype={'기관코드': str, 'code': str})
        elif file_path.suffix in ['.xlsx', '.xls']:
            df = pd.read_excel(file_path, dtype={'기관코드': str, 'code': str})
        elif file_path.suffix == '.parquet':
            df = pd.read_parquet(file_path)
        elif file_path.suffix == '.json':
            df = pd.DataFrame(self.load_json(file_path))
        else:
            raise ValueError(f"Unsupported file type: {file_path.suffix}")

        self.logger.info(f"  Loaded {format_number(len(df))} rows, {len(df.columns)} columns")
        return df

    def load_json(self, file_path: Path) -> Union[list, dict]:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def load_records(self, file_path: Path) -> List[dict]:
        """
        Load a file as a list of row dicts

        JSON and YAML keep nested values (e.g. profile allocation blocks);
        everything else goes through pandas.
        """
        file_path = Path(file_path)
        if file_path.suffix == '.json':
            if not file_path.exists():
                raise FileNotFoundError(f"Input file not found: {file_path}")
            data = self.load_json(file_path)
        elif file_path.suffix in ['.yaml', '.yml']:
            data = load_yaml_config(file_path)
        else:
            return self.load_data(file_path).to_dict(orient='records')

        if isinstance(data, dict):
            data = data.get('institutions', [])
        return list(data)

    def save_data(self, df: pd.DataFrame, output_path: Path):
        """
        Save data to a file

        Args:
            df: DataFrame to save
            output_path: Where to save the file
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if output_path.suffix == '.csv':
            # utf-8-sig so Excel opens the Korean headers correctly
            df.to_csv(output_path, index=False, encoding='utf-8-sig')
        elif output_path.suffix in ['.xlsx', '.xls']:
            df.to_excel(output_path, index=False)
        elif output_path.suffix == '.parquet':
            df.to_parquet(output_path, index=False)
        elif output_path.suffix == '.json':
            df.to_json(output_path, orient='records', force_ascii=False, indent=2)
        else:
            raise ValueError(f"Unsupported file type: {output_path.suffix}")

        self.logger.info(f"  Saved {format_number(len(df))} rows to {output_path}")
