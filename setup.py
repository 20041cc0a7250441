from setuptools import setup
from svclog import __version__

setup(
    name="svclog",
    long_description="svclog is a service logging pipeline: redaction, per-sink level filtering, "
    "structured and console formatting, and size-bounded rotating log files.",
    version=__version__,
    packages=[
        "svclog",
        "svclog.commands",
        "svclog.logging",
    ],
    include_package_data=True,
    install_requires=[
        "click>=8.0.3,<9.0.0",
        "pyyaml>=6.0.0,<7.0.0",
        "pyserde>=0.12.0",
        "humanfriendly>=10.0.0,<11.0.0",
        "beartype>=0.17.0,<1.0.0",
    ],
    extras_require={
        "tests": [
            "pytest>=7.0.0",
            "pytest-mock>=3.10.0",
        ],
    },
    entry_points="""
        [console_scripts]
        svclog=svclog.cli:cli
    """,
)
