from setuptools import setup, find_packages

setup(
    name="foodlink-security",
    version="0.1.0",
    packages=find_packages(include=["foodlink", "foodlink.*"]),
    python_requires=">=3.11",
    install_requires=[
        "beautifulsoup4>=4.12",
        "fastapi>=0.110",
        "pydantic>=2.5",
        "pydantic-settings>=2.7",
    ],
    extras_require={
        "test": [
            "httpx>=0.27",
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
