"""Shared test fixtures for the extraction test suite."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from docextract.utils.config import AIConfig, AppConfig, RemoteOCRConfig

IDENTITY_TEXT = """भारत सरकार
GOVERNMENT OF INDIA
सिद्धार्थ
Siddharth
जन्म तिथि/DOB: 07/07/2008
पुरुष/ MALE
8539 4858 7776
आधार - आम आदमी का अधिकार
"""

REPORT_TEXT = """CITY DIAGNOSTIC LABORATORY
Name | Akshat Kumar
Age | 21 Years
Gender | Male
Report Date | 12/04/2024
BLOOD GROUPING
ABO Blood Group | A
Rh (D) Factor | Positive
Final Blood Group | A+
"""


@pytest.fixture
def identity_text() -> str:
    """OCR text of a bilingual identity card."""
    return IDENTITY_TEXT


@pytest.fixture
def report_text() -> str:
    """OCR text of a tabular blood-group report."""
    return REPORT_TEXT


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic BGR test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def image_file(tmp_path: Path, sample_color_image: np.ndarray) -> Path:
    """Write the synthetic BGR image to a PNG file."""
    path = tmp_path / "card.png"
    cv2.imwrite(str(path), sample_color_image)
    return path


@pytest.fixture
def offline_config() -> AppConfig:
    """Configuration with both network backends switched off."""
    return AppConfig(
        remote_ocr=RemoteOCRConfig(enabled=False),
        ai=AIConfig(enabled=False),
    )


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
