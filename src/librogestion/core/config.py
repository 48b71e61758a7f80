"""
Configuration module for LibroGestion.

This module defines the Settings class, which loads environment variables
and provides application-wide configuration: database URL, environment,
logging level and the circulation policy (loan period, pickup window, fines).

Usage:
    Import the `settings` object to access configuration throughout the project.
"""

import os
from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        DATABASE_URL (str): Database connection string.
        ENVIRONMENT (str): Current environment (e.g., 'production', 'development').
        SQL_ECHO (bool): Echo every SQL statement emitted by the engine.
        LOG_LEVEL (str): Root log level used by the scripts.
        DEFAULT_LOAN_DAYS (int): Loan period used when no due date is given.
        RESERVATION_HOLD_DAYS (int): Days a member has to pick up a held copy.
        FINE_PER_DAY (Decimal): Fine charged per day a loan is returned late.
        LOST_ITEM_FEE (Decimal): Fee charged when a loaned copy is declared lost.
    """
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./library.db")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    DEFAULT_LOAN_DAYS: int = 14
    RESERVATION_HOLD_DAYS: int = 3
    FINE_PER_DAY: Decimal = Decimal("0.25")
    LOST_ITEM_FEE: Decimal = Decimal("25.00")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
