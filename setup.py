from setuptools import setup, find_packages

setup(
    name="bookshelf-search",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn[standard]",
        "gunicorn",
        "pydantic>=2.0.0",
        "redis",
        "slowapi",
        "prometheus-client",
        "cachetools>=5.3",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
            "fakeredis",
        ],
    },
)
