#!/usr/bin/env python3
"""
Setup script for the Lightrain controller agent
"""

from setuptools import setup, find_namespace_packages

setup(
    name="lightrain-controller",
    version="0.0.1",
    description="Single-connection WebSocket agent for the local lightrain controller",
    packages=find_namespace_packages(include=["controller*", "shared*"]),
    install_requires=[
        "websockets==15.0",
        "click==8.1.7",
        "typer==0.12.3",
        "rich==13.9.2",
    ],
    extras_require={
        "test": [
            "pytest==8.4.2",
            "pytest-asyncio==1.2.0",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        'console_scripts': [
            'lightrain-controller=controller.cli:main',
        ],
    },
)
