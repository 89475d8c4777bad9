#!/usr/bin/env python
# -*- encoding: utf-8 -*-

"""Setup Module for acktrack"""

import io
import re
from os.path import dirname, join

from setuptools import find_packages, setup


def read(*names, **kwargs):
    """Helper method to read files"""
    return io.open(
        join(dirname(__file__), *names),
        encoding=kwargs.get("encoding", "utf8"),
    ).read()


redis_requires = ["redis>=4.5.0"]

install_requires = []

all_external_requires = redis_requires

testing_requires = all_external_requires + [
    "mock>=5.1.0",
    "pytest-cov>=4.1.0",
    "pytest-mock>=3.12.0",
    "pytest>=7.4.3",
]

types_requires = [
    "types-mock>=0.1.3",
    "types-redis>=4.5.0",
]

dev_requires = (
    types_requires
    + testing_requires
    + [
        "black>=23.11.0",
        "nox>=2023.4.22",
        "coverage>=7.3.2",
        "isort>=5.12.0",
        "pre-commit>=2.16.0",
    ]
)

setup(
    name="acktrack",
    version="0.1.0",
    license="BSD 3-Clause License",
    description="Acknowledgement tracking for message queue consumers",
    long_description="%s\n%s"
    % (
        read("README.rst"),
        re.sub(":[a-z]+:`~?(.*?)`", r"``\1``", read("CHANGELOG.rst")),
    ),
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 2 - Pre-Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords=["message queue", "acknowledgement", "sqs", "redis streams"],
    install_requires=install_requires,
    extras_require={
        "redis": redis_requires,
        "external": all_external_requires,
        "test": testing_requires,
        "tests": testing_requires,
        "testing": testing_requires,
        "dev": dev_requires,
        "all": dev_requires,
    },
)
