#!/usr/bin/env python

from pathlib import Path

from setuptools import find_packages, setup

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="rydbergpy",
    version="0.1.0",
    license="MIT",
    packages=find_packages("src", exclude=["tests", "tests.*"]),
    package_dir={"": "src"},
    package_data={"rydbergpy": ["data/*.json"]},
    keywords="simulation rydberg blockade quantum-dynamics krylov",
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "scipy",
        "matplotlib",
        "scikit-learn",
        "networkx",
        "pint",
    ],
    extras_require={"test": ["pytest"]},
    include_package_data=True,
    long_description=long_description,
    long_description_content_type="text/markdown",
)

# Build with:
# python setup.py sdist
#
# Local install with:
# pip install -e .[test]
#
# Run the tests with:
# python -m pytest tests
