from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="ragdesk",
    version="0.1.0",
    author="ragdesk Team",
    author_email="team@ragdesk.example.com",
    description="Document ingestion and cited question answering over pgvector",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/ragdesk",
    packages=find_packages(exclude=["ragdesk.tests", "ragdesk.tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.103.0",
        "uvicorn>=0.23.0",
        "pydantic>=2.3.0",
        "pydantic-settings>=2.0.0",
        "sqlalchemy[asyncio]>=2.0.0,<2.1",
        "alembic>=1.11.0",
        "asyncpg>=0.28.0",
        "psycopg2-binary>=2.9.0",
        "pgvector>=0.2.4",
        "celery>=5.3.0",
        "redis>=4.6.0",
        "openai>=1.0.0",
        "langchain-core>=0.2.0",
        "langchain-openai>=0.1.0",
        "langgraph>=0.3.0",
        "tiktoken>=0.4.0",
        "pdfminer.six>=20221105",
        "boto3>=1.28.0",
        "httpx>=0.24.1",
        "python-jose[cryptography]>=3.3.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.3.1",
            "pytest-asyncio>=0.23.0",
            "pytest-cov>=4.1.0",
            "aiosqlite>=0.19.0",
            "black>=23.7.0",
            "ruff>=0.0.280",
            "mypy>=1.5.1",
            "pre-commit>=3.3.3",
            "types-redis>=4.6.0.3",
            "boto3-stubs[s3]>=1.28.0",
        ],
    },
)
