import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="everstaking",
    version="0.0.1",
    author="Jaroslav Gor",
    author_email="gjarik@gmail.com",
    description="Staking management of Everscale validator: elections participation, stake funding and recovery",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/jarig/suton",
    package_dir={'': 'src'},
    packages=setuptools.find_namespace_packages(where='src'),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    install_requires=[
        'requests>=2.28',
        'rsa>=4.9',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-asyncio>=0.21',
        ],
    },
    entry_points={
        'console_scripts': [
            'everstaking-control=everstaking.control.main:main',
        ],
    },
    include_package_data=True,
    python_requires='>=3.9',
)
