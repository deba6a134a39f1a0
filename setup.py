from setuptools import setup, find_packages

setup(
    name="ledger_import",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["import_statement"],
    install_requires=[
        "pandas>=2.0",
        "numpy",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-dependency",
        ],
    },
    entry_points={
        "console_scripts": [
            "ledger-import=ledger_import.cli:main",
        ],
    },
    description="Import bank CSV statements into a personal finance ledger with duplicate review",
    python_requires=">=3.8",
)
