from setuptools import setup, find_packages

setup(
    name="classnama",
    version="0.1.0",
    packages=find_packages(include=["school", "school.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.115",
        "uvicorn[standard]>=0.30",
        "sqlalchemy[asyncio]>=2.0",
        "asyncpg>=0.29",
        "aiosqlite>=0.20",
        "pydantic[email]>=2.7",
        "pydantic-settings>=2.7",
        "redis>=5.0",
        "cryptography>=42.0",
        "PyJWT>=2.8",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
)
