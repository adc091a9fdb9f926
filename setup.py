"""
Tastegraph Server - Cross-domain cultural recommendation ecosystems
Setup configuration for pip installation
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

setup(
    name="tastegraph-server",
    version="1.0.0",
    author="bionicbutterfly13",
    description="Cross-domain cultural relevance and connection-discovery engine",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.5,<3",
        "pydantic-settings>=2.1",
        "httpx>=0.25",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ]
    },
    entry_points={
        "console_scripts": [
            "tastegraph-server=tastegraph.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: MIT License",
    ],
)
