"""
Root pytest configuration.

Registers the API step definitions/fixtures and the scenario lifecycle hooks
so that both the live suite (features/) and the offline suite (tests/) share them.
pytester runs the hook tests in a separate pytest process.
"""

pytest_plugins = [
    "pytester",
    "features.steps.api_steps",
    "features.hooks",
]
