"""Setup script for Linguini."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README
readme = Path("README.md").read_text(encoding="utf-8")

setup(
    name="linguini-annotate",
    version="0.3.0",
    description="Phrase-level translation and simplification annotations for reading",
    long_description=readme,
    long_description_content_type="text/markdown",
    license="MIT",

    packages=find_packages(exclude=["tests*", "docs*"]),

    python_requires=">=3.10",

    install_requires=[
        "pyyaml>=6.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
        "openai>=1.0.0",
        "deep-translator>=1.11.0",
        "typer>=0.9.0",
        "loguru>=0.7.0",
        "langdetect>=1.0.9",
        "beautifulsoup4>=4.12.0",
        "jieba>=0.42.1"
    ],

    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.24.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
            "isort>=5.12.0"
        ]
    },

    entry_points={
        "console_scripts": [
            "linguini=cli.commands.main:cli",
        ],
    },

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Text Processing :: Linguistic",
    ],

    keywords="translation language-learning annotation nlp llm",
)
