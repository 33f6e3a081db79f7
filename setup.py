"""
Setup script for revision-engine.

Revision engine is a terminal revision companion built around a quiz
attempt log. It serves three roles:

1. Mastery Tracking - Per-topic accuracy, focus time and weak-topic ranking
2. Spaced Revision - Stage-based review scheduling for topics and flashcards
3. Smart Sessions - Time-boxed revision queues with rapid-fire MCQ rounds

The 'revise' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="revision-engine",
    version="1.0.0",
    description="Spaced revision and mastery scheduling from quiz attempt history",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "revise=revision_engine.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="revision spaced-repetition mastery quiz cli education",
)
