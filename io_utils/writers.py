import os

import pandas as pd

from io_utils.readers import TAG_SEP
from store.schema import LIST_COLUMNS


def ensure_outdir(outdir):
    os.makedirs(outdir, exist_ok=True)


def _join_tags(value):
    if isinstance(value, (list, tuple, set)):
        return TAG_SEP.join(str(t) for t in value)
    return value


def write_table(df: pd.DataFrame, path):
    out = df.copy()
    for col in LIST_COLUMNS & set(out.columns):
        out[col] = out[col].map(_join_tags)
    out.to_csv(path, index=False)


def write_report(records, outdir, filename, columns=None):
    df = pd.DataFrame(records, columns=columns)
    path = os.path.join(outdir, filename)
    write_table(df, path)
    return path
