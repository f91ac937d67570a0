from setuptools import find_packages, setup

setup(
    name="chat-service",
    version="0.1.0",
    description="Conversational chat service with pluggable LLM completion backends",
    author="Kgents Team",
    author_email="team@kgents.com",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn[standard]>=0.29.0",
        "pydantic>=2.5.0,<3.0.0",
        "pydantic-settings>=2.2.0",
        "python-dotenv>=1.0.0",
        "sqlalchemy[asyncio]>=2.0.31,<3.0.0",
        "aiosqlite>=0.20.0",
        "psycopg[binary]>=3.1.18",
        "httpx>=0.27.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.5",
        ],
    },
)
