"""
PageStore setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="pagestore",
    version="1.0.0",
    description="PageStore — JSON-file page storage for a small CMS backend",
    packages=find_packages(include=["pagestore", "pagestore.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "pagestore=pagestore.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
