"""
vibechecc setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="vibechecc",
    version="1.0.0",
    description="vibechecc — dual-mode data tables for Reflex admin consoles",
    packages=find_packages(include=["vibechecc", "vibechecc.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "vibechecc=vibechecc.cli:main",
        ],
    },
    install_requires=[
        "reflex>=0.6.0",
        "sqlalchemy>=2.0",
        "psycopg2-binary>=2.9",
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
