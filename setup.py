from setuptools import find_packages, setup

setup(
    name="docker-manager",
    version="0.1.0",
    packages=find_packages(
        include=[
            "dm_common",
            "dm_common.*",
            "dm_engine",
            "dm_engine.*",
            "dm_controller",
            "dm_controller.*",
            "dm_server",
            "dm_server.*",
            "dm_client",
            "dm_client.*",
            "dm_cli",
            "dm_cli.*",
        ]
    ),
    install_requires=[
        "requests>=2.31.0",
        "fastapi>=0.104.0",
        "uvicorn>=0.24.0",
        "click>=8.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-xdist>=3.3.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dm=dm_cli.cli:main",
        ],
    },
    python_requires=">=3.10",
)
