# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests.
#
# FIXTURES:
# ---------
# - supported_isas  → ISA vocabulary used by tables and codecs in tests
# - table           → Empty UsageTable
# - codec           → UsageCodec for the same vocabulary
# - usage_file      → Path of a (not yet existing) usage file in tmp_path
# - store           → UsageStore over table/codec/usage_file with a long delay
# - app_config      → AppConfig pointing at tmp_path
# - populated_table → Table with a primary package and two secondary files
#
# NOTES:
# ------
# - Use tmp_path for temporary files
# - Stores use a 60s write delay so nothing is written unless a test
#   flushes or waits explicitly
# ==============================================

import pytest

from dexusage.config import AppConfig, IsaConfig, StoreConfig
from dexusage.persistence.codec import UsageCodec
from dexusage.persistence.usage_store import UsageStore
from dexusage.usage.usage_table import UsageTable


@pytest.fixture
def supported_isas():
    return frozenset({"arm", "arm64", "x86"})


@pytest.fixture
def table(supported_isas):
    return UsageTable(supported_isas)


@pytest.fixture
def codec(supported_isas):
    return UsageCodec(supported_isas)


@pytest.fixture
def usage_file(tmp_path):
    return tmp_path / "system" / "package-dex-usage.list"


@pytest.fixture
def store(table, codec, usage_file):
    usage_store = UsageStore(table, codec, usage_file, write_delay_seconds=60.0)
    yield usage_store
    usage_store.flush()


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        store=StoreConfig(data_dir=str(tmp_path / "system"), write_delay_seconds=60.0),
        isa=IsaConfig(supported_abis=["arm64-v8a", "armeabi-v7a", "x86"]),
    )


@pytest.fixture
def populated_table(table):
    table.record("com.example.app", "/data/app/base.apk", 0, "arm64", True, True)
    table.record("com.example.app", "/data/user/0/com.example.app/a.dex", 0, "arm64", False, False)
    table.record("com.example.app", "/data/user/0/com.example.app/a.dex", 0, "arm", False, False)
    table.record("com.example.app", "/data/user/10/com.example.app/b.dex", 10, "x86", True, False)
    table.record("com.example.lib", "/data/user/0/com.example.lib/c.dex", 0, "arm64", False, False)
    return table
