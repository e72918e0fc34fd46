import os


# Tree settings are read from the environment. Tests start from the defaults
# and opt into other values through monkeypatch.
for key in ("BST_REMOVAL_POLICY", "BST_DEPTH_ALERT_THRESHOLD", "BST_LOG_LEVEL"):
    os.environ.pop(key, None)
