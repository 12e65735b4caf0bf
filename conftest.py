"""
Root pytest configuration.

pytest 8.x only honours ``pytest_plugins`` in the rootdir conftest, so the
asyncio plugin used by the orchestrator tests is declared here.
"""

pytest_plugins = ("pytest_asyncio",)
