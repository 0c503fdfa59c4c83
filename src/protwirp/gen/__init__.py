from protwirp.gen.descriptor import MethodDescriptor, ServiceDescriptor, TypeIndex, services_from_file
from protwirp.gen.generator import ServiceGenerator, output_name

__all__ = [
    "MethodDescriptor",
    "ServiceDescriptor",
    "ServiceGenerator",
    "TypeIndex",
    "output_name",
    "services_from_file",
]
