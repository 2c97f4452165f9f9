"""Setup configuration for maple-client."""

from setuptools import setup, find_packages

setup(
    name="maple-client",
    version="0.1.0",
    description="LAN discovery and HTTP command client for Maple servers",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "requests>=2.31.0",
        "pyyaml>=6.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "maple-client=maple_client.cli:main",
        ],
    },
)
