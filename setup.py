"""
ProjectAI setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="projectai",
    version="1.0.0",
    description="ProjectAI — project management dashboard services",
    packages=find_packages(include=["projectai", "projectai.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "projectai=projectai.cli:main",
        ],
    },
    install_requires=[
        "sqlalchemy>=2.0",
        "psycopg2-binary>=2.9",
        "pydantic>=2.5",
        "redis>=5.0",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
