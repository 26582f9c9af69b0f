"""Packaging script for Crowd Pick.

Install for development:
    pip install -e ".[test]"
"""

from setuptools import setup

setup(
    name="crowd-pick",
    version="0.1.0",
    description="Rate random characters and see how you compare to the crowd",
    python_requires=">=3.8",
    py_modules=[
        "api_server",
        "app",
        "client",
        "config",
        "database",
        "errors",
        "recorder",
        "scoring",
        "selector",
        "session",
        "stats_store",
        "tag_filter",
    ],
    install_requires=[
        "requests",
        "typer",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["crowd-pick=app:app"],
    },
)
