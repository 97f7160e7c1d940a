import logging
import time

import networkx as nx
import pandas as pd

from matching.normalize import matchable_phone, name_key, normalize_email

logger = logging.getLogger(__name__)


# --------- helpers ---------
def _key(value) -> str:
    if value is None or (isinstance(value, float) and value != value):
        return ""
    return str(value).strip()


def _link(G: nx.Graph, df: pd.DataFrame, cols: list[str], reason: str):
    """Connect every row sharing a non-empty value in `cols`; earlier rules keep their reason."""
    present = df
    for col in cols:
        present = present[present[col] != ""]
    for _, grp in present.groupby(cols):
        idxs = list(grp.index)
        for j in idxs[1:]:
            if not G.has_edge(idxs[0], j):
                G.add_edge(idxs[0], j, reason=reason)


def _groups(G: nx.Graph, df: pd.DataFrame, data_cols: list[str]):
    completeness = df[data_cols].notna().sum(axis=1)
    groups = []
    rows = []
    for comp in nx.connected_components(G):
        if len(comp) < 2:
            continue
        members = sorted(comp)
        target_idx = completeness.loc[members].idxmax()
        reasons = []
        for _, _, reason in G.subgraph(members).edges(data="reason"):
            if reason not in reasons:
                reasons.append(reason)
        gid = len(groups)
        groups.append({df.at[i, "id"] for i in members})
        for i in members:
            rows.append({
                "group_id": gid,
                "id": df.at[i, "id"],
                "suggested_target": df.at[target_idx, "id"],
                "is_target": i == target_idx,
                "match_reasons": "; ".join(reasons),
            })
    report = pd.DataFrame(rows, columns=["group_id", "id", "suggested_target", "is_target", "match_reasons"])
    return groups, report


# --------- CONTACTS ---------
def cluster_contacts(df: pd.DataFrame):
    """
    Group stored contacts that the creation guard would have flagged against
    each other:
      1) same normalized email
      2) same normalized phone (>= 10 digits)
      3) same first + last name (case-insensitive) and same account, or both without one
    Groups are connected components, so A~B by email and B~C by phone is one group.
    The most complete row of each group is suggested as the merge target.
    Returns: (groups: list[set[id]], report DataFrame joined to the contact rows)
    """
    start = time.time()
    df = df.copy().reset_index(drop=True)
    for col in ["id", "first_name", "last_name", "email", "phone", "account_id"]:
        if col not in df.columns:
            df[col] = None

    df["email_norm"] = df["email"].apply(normalize_email)
    df["phone_norm"] = df["phone"].apply(matchable_phone)
    df["first_key"] = df["first_name"].apply(name_key)
    df["last_key"] = df["last_name"].apply(name_key)
    df["account_key"] = df["account_id"].apply(_key)

    G = nx.Graph()
    G.add_nodes_from(df.index)
    _link(G, df, ["email_norm"], "Exact email match")
    _link(G, df, ["phone_norm"], "Exact phone match")
    # account_key may be empty here: both-without-account counts as a match
    named = df[(df["first_key"] != "") & (df["last_key"] != "")]
    for _, grp in named.groupby(["first_key", "last_key", "account_key"]):
        idxs = list(grp.index)
        for j in idxs[1:]:
            if not G.has_edge(idxs[0], j):
                G.add_edge(idxs[0], j, reason="Name and account match")

    data_cols = ["first_name", "last_name", "email", "phone", "role", "account_id"]
    groups, report = _groups(G, df, [c for c in data_cols if c in df.columns])
    report = report.merge(df[["id", "first_name", "last_name", "email", "phone", "account_id"]], on="id", how="left")

    logger.info("cluster_contacts: %.2fs, %d duplicate group(s)", time.time() - start, len(groups))
    return groups, report


# --------- DEALS ---------
def cluster_deals(df: pd.DataFrame):
    """
    Group stored deals sharing a case-insensitive trimmed name. Deals that also
    share an account are linked first so the stronger reason is reported.
    Returns: (groups: list[set[id]], report DataFrame joined to the deal rows)
    """
    start = time.time()
    df = df.copy().reset_index(drop=True)
    for col in ["id", "name", "account_id", "stage", "amount"]:
        if col not in df.columns:
            df[col] = None

    df["name_key"] = df["name"].apply(name_key)
    df["account_key"] = df["account_id"].apply(_key)

    G = nx.Graph()
    G.add_nodes_from(df.index)
    _link(G, df, ["name_key", "account_key"], "Exact name and account match")
    _link(G, df, ["name_key"], "Exact name match")

    data_cols = ["name", "account_id", "pipeline_id", "amount", "stage", "status", "close_date"]
    groups, report = _groups(G, df, [c for c in data_cols if c in df.columns])
    report = report.merge(df[["id", "name", "account_id", "stage", "amount"]], on="id", how="left")

    logger.info("cluster_deals: %.2fs, %d duplicate group(s)", time.time() - start, len(groups))
    return groups, report
