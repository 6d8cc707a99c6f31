"""
Pytest configuration and fixtures for forum parser tests
"""

import pytest
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


SHEET_ID = "1AbCdEfGhIjKlMnOpQrStUvWxYz0123456"

SAMPLE_TITLE = "[STD] Korean Spring Cup | 1v1 | #1,000 - #50,000 | BWS"

SAMPLE_BODY = f"""[centre][img]https://i.ppy.sh/abcdef1234567890/banner.png[/img][/centre]

[b]Tournament[/b]: Korean Spring Cup
[b]Host[/b]: TestHost

[b]Schedule[/b]
Registrations: August 1st - 15th
Qualifiers: August 20th
Grand Finals: September 13th - 14th

[b]Mappool[/b]
Qualifiers (5.5*)
Round of 16 (6.0*)
Grand Finals (7.5*)

Discord: https://discord.gg/abcDEF12
Main sheet: https://docs.google.com/spreadsheets/d/{SHEET_ID}/edit
Challonge: https://challonge.com/kspringcup25
"""


@pytest.fixture(scope="session")
def reference_date():
    """Fixed parse date so year defaulting is reproducible"""
    return datetime(2025, 6, 1)


@pytest.fixture(scope="session")
def sample_title():
    """Typical densely tagged topic title"""
    return SAMPLE_TITLE


@pytest.fixture(scope="session")
def sample_body():
    """Typical tournament announcement body (BBCode)"""
    return SAMPLE_BODY


@pytest.fixture(scope="session")
def sample_sheet_id():
    """Spreadsheet ID embedded in the sample body"""
    return SHEET_ID


@pytest.fixture(scope="function")
def fake_lookup():
    """Host lookup returning a fixed username for user 1234"""
    def lookup(user_id):
        return "TestHost" if user_id == 1234 else None
    return lookup
