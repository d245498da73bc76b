"""
Setup configuration for JSONDB_ENGINE package.
"""

from pathlib import Path

from setuptools import find_packages, setup

# Read README for long description
readme_file = Path(__file__).parent / "jsondb_engine" / "README.md"
long_description = ""
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")

setup(
    name="jsondb-engine",
    version="0.1.0",
    description="Embedded JSON document store with schema validation",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["jsondb_engine", "jsondb_engine.*"]),
    python_requires=">=3.10",
    install_requires=[
        "jsonschema>=4.0.0",
        "pydantic>=2.0.0",
        "pymongo>=4.0.0",  # bson.ObjectId for document handles
    ],
    extras_require={
        "formats": ["jsonschema[format-nongpl]>=4.0.0"],
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="json document store embedded database schema",
    include_package_data=True,
)
