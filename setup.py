"""
Setup script for masteryflow.

MasteryFlow assigns each learner a daily mission drawn from their learning
tracks, balanced against a cognitive load budget, and settles completed
tasks into XP, track progress and streaks.

The 'masteryflow' command is the CLI entry point; the REST API runs with
`python main.py` or `uvicorn src.api.main:app`.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="masteryflow",
    version="0.1.0",
    description="Daily learning missions with cognitive load balancing and gamified progress",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="MasteryFlow",
    # src/ and its subpackages are namespace packages (no __init__ in src/)
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config", "main"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # API
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        # HTTP (TestClient transport)
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
        # IANA zone data on platforms without a system tz database
        "tzdata>=2023.3",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "masteryflow=src.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Framework :: FastAPI",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="learning missions gamification streaks xp",
)
