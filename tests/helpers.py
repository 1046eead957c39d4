"""
Helpers to build flow graphs in tests
"""

ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"


def trigger(node_id="t1", **config):
    return {"id": node_id, "type": "trigger", "config": config}


def action(node_id, action_name, **params):
    return {"id": node_id, "type": "action", "config": {"action": action_name, "params": params}}


def condition(node_id, field, operator, value):
    return {"id": node_id, "type": "condition", "config": {"field": field, "operator": operator, "value": value}}


def ai(node_id, prompt_template="Summarize {{name}}", model=None):
    config = {"promptTemplate": prompt_template}
    if model:
        config["model"] = model
    return {"id": node_id, "type": "ai", "config": config}


def edge(edge_id, source, target, label=None):
    data = {"id": edge_id, "sourceNodeId": source, "targetNodeId": target}
    if label is not None:
        data["conditionLabel"] = label
    return data


def log_messages(execution):
    return [entry["message"] for entry in execution.logs]


def log_entries(execution, type):
    return [entry for entry in execution.logs if entry["type"] == type]
