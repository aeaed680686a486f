"""
TabCaption setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="tabcaption",
    version="1.0.0",
    description="TabCaption — template-driven document captions that follow the project tree",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "tabcaption=tabcaption.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)
