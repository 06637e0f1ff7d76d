from setuptools import setup, find_packages

setup(
    name="dag-scheduler",
    version="0.1.0",
    description="Run named async tasks in dependency order",
    author="DAG Scheduler Team",
    packages=find_packages(),
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=22.0.0",
            "isort>=5.0.0",
        ],
    },
    python_requires=">=3.8",
)
