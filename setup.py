"""
hpx-deploy setup
"""
from setuptools import setup, find_packages

setup(
    name="hpx-deploy",
    version="1.0.0",
    description="HPX deployment tools - CloudFormation stack dispatcher and release packager",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "boto3>=1.34.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "moto[cloudformation]>=5.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "hpx-deploy=hpx_deploy.cli:main",
            "hpx-dist=hpx_deploy.dist:main",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
