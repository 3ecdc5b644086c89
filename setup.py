"""
Resquel - REST routes compiled from declarative config
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="resquel",
    version="1.0.0",
    author="Diegoproggramer",
    author_email="",
    description="Declarative REST routes over SQL tables, with before/after hooks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Diegoproggramer/resquel",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Topic :: Database :: Front-Ends",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.100.0",
        "uvicorn>=0.20.0",
        "sqlalchemy[asyncio]>=2.0.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "sqlite": ["aiosqlite>=0.19.0"],
        "postgresql": ["asyncpg>=0.28.0"],
        "mysql": ["aiomysql>=0.2.0"],
        "dev": [
            "pytest>=7.0",
            "httpx>=0.24.0",
            "aiosqlite>=0.19.0",
            "anyio>=3.7.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "resquel=resquel.cli:cli_main",
        ],
    },
    keywords="fastapi, rest, sql, sqlalchemy, crud, hooks, python",
    project_urls={
        "Bug Reports": "https://github.com/Diegoproggramer/resquel/issues",
        "Source": "https://github.com/Diegoproggramer/resquel",
    },
)
