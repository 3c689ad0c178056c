"""Setup configuration for printtracker."""

from setuptools import setup, find_packages

setup(
    name="printtracker",
    version="1.0.0",
    description="3D print job tracking: customers, jobs, items, notifications and stats",
    author="Your Name",
    packages=find_packages(include=["printtracker", "printtracker.*"]),
    install_requires=[
        "click>=8.1.7",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
    ],
    entry_points={
        "console_scripts": [
            "printtracker=printtracker.cli:cli",
        ],
    },
    python_requires=">=3.8",
)
