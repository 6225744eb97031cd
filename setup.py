"""
GenNetta - SQL Server schema to ASP.NET Core project generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="gennetta",
    version="0.1.0",
    author="GenNetta contributors",
    author_email="",
    description="Analyze a SQL Server schema and generate an ASP.NET Core MVC + Web API project",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests", "tests.*")),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
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
        "sqlalchemy>=2.0.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "pydantic-settings>=2.7.0",
    ],
    extras_require={
        "mssql": [
            "pyodbc>=5.0",
        ],
        "dev": [
            "pytest>=7.0",
            "httpx>=0.24.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gennetta=gennetta.__main__:main",
        ],
    },
    keywords="sqlserver, aspnetcore, generator, scaffolding, code-generator, crud, efcore",
)
