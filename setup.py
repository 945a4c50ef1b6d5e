"""Setup configuration for SightGuard Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="sightguard",
    version="0.0.1",
    description="A Discord bot for image moderation using Sightengine",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord",
        "aiosqlite",
        "PyYAML",
        "python-dotenv",
        "requests",
        "prompt_toolkit",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "sightguard=sightguard.main:main",
        ],
    },
)
