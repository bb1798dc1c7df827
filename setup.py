from setuptools import setup, find_packages

setup(
    name="l1muon_reco",
    version="0.1.0",
    description="Extrapolation of offline muon tracks to trigger-level muon station surfaces",
    author="Your Name",
    author_email="your.email@example.com",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.10",
    install_requires=[
        # Runtime dependencies
        "numpy",
        "scipy",
        "pandas",
        "orjson",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
        # Developer extras
        "dev": [
            "pytest",
            "black",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "l1muon-reco=l1muon_reco.main:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
