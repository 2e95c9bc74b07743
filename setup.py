from setuptools import setup, find_packages

setup(
    name="django-stripe-payments",
    version="0.1.0",
    packages=find_packages(include=["stripe_payments", "stripe_payments.*", "paysuite", "paysuite.*"]),
    include_package_data=True,
    package_data={
        "stripe_payments": ["templates/stripe_payments/emails/*.html"],
    },
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14",
        "django-anymail>=10.0",
        "stripe>=8.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-django>=4.5",
        ],
    },
    author="Wayne",
    author_email="support@techwithwayne.com",
    description="Stripe payment forms for Django: one-time charges, subscriptions and iDEAL, with order tracking and email notifications.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://techwithwayne.com",
    license="MIT",
    classifiers=[
        "Framework :: Django",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License"
    ],
    python_requires='>=3.9',
)
