import pathlib
import re

from setuptools import find_packages, setup

ROOT = pathlib.Path(__file__).parent


def read_version():
    init = (ROOT / "allowed_assignor" / "__init__.py").read_text("utf-8")
    match = re.search(r'^__version__ = "([^"]+)"', init, re.MULTILINE)
    if match is None:
        raise RuntimeError("Unable to determine version.")
    return match.group(1)


setup(
    name="allowed-assignor",
    version=read_version(),
    description=(
        "Kafka consumer group partition assignor that honours per-member"
        " allowed partitions"
    ),
    license="Apache-2.0",
    python_requires=">=3.10",
    packages=find_packages(include=["allowed_assignor", "allowed_assignor.*"]),
    install_requires=[
        "typing_extensions >=4.6.0",
    ],
    extras_require={
        "test": ["pytest", "numpy"],
    },
    classifiers=[
        "License :: OSI Approved :: Apache Software License",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Topic :: System :: Distributed Computing",
    ],
)
