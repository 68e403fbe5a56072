from setuptools import setup, find_packages

setup(
    name="planogram_layout",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pandas>=1.3.0",
        "numpy>=1.21.0",
        "openpyxl>=3.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    python_requires=">=3.8",
)
