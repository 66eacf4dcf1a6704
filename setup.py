from setuptools import setup, find_packages

setup(
    name="c4lab",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["run"],
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "filelock",  # Locking for the JSON state files
    ],
    extras_require={
        "test": ["pytest"],
    },
)
