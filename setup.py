from setuptools import setup, find_packages

setup(
    name="colortoken",
    version="0.1.0",
    description="Language server for color previews in JSON color tables, C++ arrays and CSS/LESS variables",
    packages=find_packages(include=["colortoken", "colortoken.*"]),
    python_requires=">=3.11",
    install_requires=[
        "click>=8.0",
        "pydantic>=2.0",
        "tomli>=2.0",
        "tomli-w>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "colortoken=colortoken.cli:cli",
            "colortoken-server=colortoken.server_cli:main",
        ],
    },
)
