from .file_utils import load_yaml_file, load_yaml_documents, load_json_file, write_json_file

__all__ = [
    'load_yaml_file',
    'load_yaml_documents',
    'load_json_file',
    'write_json_file'
]
