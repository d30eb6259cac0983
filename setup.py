"""Setup script for Commit Journal"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = ""
readme_path = this_directory / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="commit-journal",
    version="0.3.0",
    description="Evolutionary file-journey analysis of git repositories with language models",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Version Control :: Git",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.11",
    install_requires=[
        "rich>=13.0.0",
        "typer>=0.9.0",
        "diskcache>=5.6.0",
        "httpx>=0.25.0",
        "tenacity>=8.2.0",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "serve": [
            "starlette>=0.27.0",
            "uvicorn>=0.23.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "starlette>=0.27.0",
            "uvicorn>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "commit-journal=commit_journal.cli:app",
        ],
    },
    keywords="git commit-history code-evolution llm architecture hotspots",
)
