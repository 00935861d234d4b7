"""Shared pytest fixtures for siggen tests."""

from pathlib import Path

import pytest
from dotenv import load_dotenv
from hypothesis import settings

from siggen.client import Siggen
from siggen.core.config import SiggenConfig
from siggen.signature.environment import EnvironmentLoader, SignatureEnvironment
from siggen.signature.parser import SignatureParser

# Load environment variables from .env file
load_dotenv()

# Configure hypothesis for property-based testing
settings.register_profile("ci", max_examples=100, deadline=None)
settings.register_profile("dev", max_examples=20, deadline=None)
settings.load_profile("dev")

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_path() -> Path:
    """Path to the shared fixture files."""
    return FIXTURES


@pytest.fixture(scope="session")
def parser() -> SignatureParser:
    """One signature parser for the whole session (grammar compilation is slow)."""
    return SignatureParser()


@pytest.fixture
def environment(parser: SignatureParser) -> SignatureEnvironment:
    """A signature environment with the bundled core declarations loaded."""
    env = SignatureEnvironment(parser)
    EnvironmentLoader().load(env)
    return env


@pytest.fixture
def config() -> SiggenConfig:
    """Configuration isolated from the process environment and .env files."""
    return SiggenConfig(_env_file=None)


@pytest.fixture
def siggen(config: SiggenConfig) -> Siggen:
    """A fresh engine with the core declarations preloaded."""
    return Siggen(config)
