"""Shared pytest fixtures for all tests."""

import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from knxproj_factory import PROJECT_PASSWORD, build_knxproj, sample_project_files  # noqa: E402


@pytest.fixture(scope="session")
def project_root_dir():
    """Return the project root directory."""
    return project_root


@pytest.fixture(scope="session")
def config_file(project_root_dir):
    """Return path to config.json file."""
    config_path = project_root_dir / "config.json"
    if not config_path.exists():
        pytest.skip(f"Config file not found: {config_path}")
    return config_path


@pytest.fixture
def temp_output_dir(tmp_path):
    """Create a temporary directory for test outputs."""
    output_dir = tmp_path / "output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def project_files():
    """Editable copy of the sample export entries."""
    return sample_project_files()


@pytest.fixture
def knxproj_bytes():
    """Plain sample project archive."""
    return build_knxproj()


@pytest.fixture
def knxproj_file(tmp_path, knxproj_bytes):
    """Plain sample project archive written to disk."""
    path = tmp_path / "demo.knxproj"
    path.write_bytes(knxproj_bytes)
    return path


@pytest.fixture
def protected_knxproj_bytes():
    """ETS6 style export with an AES encrypted nested project archive."""
    return build_knxproj(nested=True, password=PROJECT_PASSWORD)


@pytest.fixture
def knxproj_builder():
    """Factory fixture: ``knxproj_builder(files=None, nested=False, password=None)``."""
    return build_knxproj
