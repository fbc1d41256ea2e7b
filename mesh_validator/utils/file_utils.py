import yaml
import json


def load_yaml_file(path):
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def load_yaml_documents(path):
    """读取可能包含多个文档（---）的YAML文件，跳过空文档"""
    with open(path, 'r', encoding='utf-8') as f:
        return [doc for doc in yaml.safe_load_all(f) if doc]


def load_json_file(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json_file(path, data):
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
