# -*- coding: utf-8 -*-

from setuptools import find_packages, setup

extras_require = {
    "test": [
        "pytest>=6.2.5",
        "pytest-cov>=2.10",
        "pytest-instafail>=0.4",
        "pytest-xdist>=2.5",
        "hypothesis>=5.37.1",
    ],
    "lint": [
        "black==23.12.0",
        "flake8==6.1.0",
        "flake8-bugbear==23.12.2",
        "flake8-use-fstring==1.4",
        "isort==5.13.2",
        "mypy==1.5",
    ],
    "dev": ["ipython", "pre-commit", "twine"],
}

extras_require["dev"] = extras_require["test"] + extras_require["lint"] + extras_require["dev"]

with open("README.md", "r") as f:
    long_description = f.read()


setup(
    name="riggedballot",
    version="0.1.0",
    description="A voting ledger with delegation and escrowed bribes",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="riggedballot contributors",
    author_email="",
    license="Apache License 2.0",
    keywords="voting ballot delegation escrow ledger",
    include_package_data=True,
    packages=find_packages(include=["riggedballot", "riggedballot.*"]),
    python_requires=">=3.10,<4",
    install_requires=["cbor2>=5.4.6", "pycryptodome>=3.5.1,<4", "packaging>=23.1"],
    tests_require=extras_require["test"],
    extras_require=extras_require,
    entry_points={
        "console_scripts": ["riggedballot=riggedballot.cli.ballot_replay:_parse_cli_args"]
    },
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
