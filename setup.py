from setuptools import setup, find_packages

setup(
    name="snake-sniper",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "requests>=2.31.0",
        "python-dotenv>=1.0.0",
        "click>=8.1.0",
        "rich>=13.0.0",
        "solana>=0.34.0,<0.40",
        "solders>=0.21.0",
        "base58>=2.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "snakesniper=snake_sniper.cli:main",
        ],
    },
    python_requires=">=3.10",
)
