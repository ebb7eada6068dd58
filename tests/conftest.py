import pytest


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the developer's environment and config files out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in (
        "SWAP_BUNDLER_CONFIG",
        "SWAP_BUNDLER_API_KEY",
        "SWAP_BUNDLER_PRIVATE_KEY",
        "SWAP_BUNDLER_SAFE_TXN_SRVC_API_KEY",
        "SWAP_BUNDLER_SAFE_ADDRESS",
        "SWAP_BUNDLER_SLIPPAGE_TOLERANCE",
        "SWAP_BUNDLER_NETWORK",
        "SWAP_BUNDLER_DRY_RUN",
        "SWAP_BUNDLER_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
