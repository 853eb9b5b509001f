SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied_at REAL NOT NULL
);

-- Users: admins and miners
CREATE TABLE IF NOT EXISTS users (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    email         TEXT NOT NULL UNIQUE COLLATE NOCASE,
    username      TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role          TEXT NOT NULL CHECK (role IN ('admin', 'miner')),
    created_at    REAL NOT NULL,
    updated_at    REAL NOT NULL
);

-- Miner profiles (one per miner user)
CREATE TABLE IF NOT EXISTS miners (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id        INTEGER NOT NULL UNIQUE,
    firstname      TEXT NOT NULL,
    lastname       TEXT NOT NULL,
    country        TEXT NOT NULL DEFAULT '',
    age            INTEGER NOT NULL DEFAULT 0,
    phone          TEXT NOT NULL DEFAULT '',
    wallet_address TEXT NOT NULL DEFAULT '',
    is_active      INTEGER NOT NULL DEFAULT 1,
    created_at     REAL NOT NULL,
    updated_at     REAL NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

-- Mining servers: hardware/capacity profiles
CREATE TABLE IF NOT EXISTS mining_servers (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    name                  TEXT NOT NULL UNIQUE,
    hash_rate             TEXT NOT NULL,
    power_consumption_kwh TEXT NOT NULL,
    is_active             INTEGER NOT NULL DEFAULT 1,
    created_at            REAL NOT NULL,
    updated_at            REAL NOT NULL
);

-- Mining contracts: payout plans on a server
CREATE TABLE IF NOT EXISTS mining_contracts (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    mining_server_id INTEGER NOT NULL,
    period_return    REAL NOT NULL CHECK (period_return >= 0),
    period           TEXT NOT NULL CHECK (period IN ('daily', 'weekly', 'fortnightly', 'monthly')),
    is_active        INTEGER NOT NULL DEFAULT 1,
    created_at       REAL NOT NULL,
    updated_at       REAL NOT NULL,
    FOREIGN KEY (mining_server_id) REFERENCES mining_servers(id)
);

-- Mining subscriptions: a miner's position in a contract
CREATE TABLE IF NOT EXISTS mining_subscriptions (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    miner_id           INTEGER NOT NULL,
    mining_contract_id INTEGER NOT NULL,
    amount_deposited   REAL NOT NULL DEFAULT 0 CHECK (amount_deposited >= 0),
    earnings           REAL NOT NULL DEFAULT 0 CHECK (earnings >= 0),
    currency           TEXT NOT NULL DEFAULT 'USD',
    status             TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'active', 'cancelled')),
    deposit_status     TEXT NOT NULL DEFAULT 'no_deposit'
                       CHECK (deposit_status IN ('no_deposit', 'pending', 'incomplete', 'complete')),
    auto_accrue        INTEGER NOT NULL DEFAULT 1,
    first_payment_at   REAL,
    created_at         REAL NOT NULL,
    updated_at         REAL NOT NULL,
    FOREIGN KEY (miner_id) REFERENCES miners(id),
    FOREIGN KEY (mining_contract_id) REFERENCES mining_contracts(id)
);

-- Earnings: accrual history per subscription
CREATE TABLE IF NOT EXISTS earnings (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    subscription_id INTEGER NOT NULL,
    amount          REAL NOT NULL,
    days            INTEGER NOT NULL DEFAULT 1,
    created_at      REAL NOT NULL,
    FOREIGN KEY (subscription_id) REFERENCES mining_subscriptions(id) ON DELETE CASCADE
);

-- Ledger entries: audit trail for every balance mutation
CREATE TABLE IF NOT EXISTS ledger_entries (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    subscription_id INTEGER NOT NULL,
    field           TEXT NOT NULL CHECK (field IN ('earnings', 'deposit')),
    mode            TEXT NOT NULL CHECK (mode IN ('set', 'increase', 'decrease')),
    amount          REAL NOT NULL,
    balance_before  REAL NOT NULL,
    balance_after   REAL NOT NULL,
    reference       TEXT NOT NULL DEFAULT '',
    created_at      REAL NOT NULL,
    FOREIGN KEY (subscription_id) REFERENCES mining_subscriptions(id) ON DELETE CASCADE
);

-- Withdrawals: miner requests to move funds out
CREATE TABLE IF NOT EXISTS withdrawals (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    miner_id         INTEGER NOT NULL,
    subscription_id  INTEGER NOT NULL,
    type             TEXT NOT NULL DEFAULT 'earnings' CHECK (type IN ('earnings', 'deposit')),
    amount           REAL NOT NULL CHECK (amount > 0),
    currency         TEXT NOT NULL DEFAULT 'USD',
    destination      TEXT NOT NULL DEFAULT '',
    status           TEXT NOT NULL DEFAULT 'pending'
                     CHECK (status IN ('pending', 'approved', 'processing', 'completed', 'rejected', 'cancelled')),
    rejection_reason TEXT,
    transaction_hash TEXT,
    processed_by     INTEGER,
    created_at       REAL NOT NULL,
    updated_at       REAL NOT NULL,
    FOREIGN KEY (miner_id) REFERENCES miners(id),
    FOREIGN KEY (subscription_id) REFERENCES mining_subscriptions(id)
);

-- Transactions: payments into the platform (subscription deposits, KYC fees)
CREATE TABLE IF NOT EXISTS transactions (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    miner_id   INTEGER NOT NULL,
    entity     TEXT NOT NULL CHECK (entity IN ('subscription', 'kyc')),
    entity_id  INTEGER NOT NULL,
    amount_usd REAL NOT NULL CHECK (amount_usd > 0),
    status     TEXT NOT NULL DEFAULT 'initialized'
               CHECK (status IN ('initialized', 'pending', 'successful', 'failed')),
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL,
    FOREIGN KEY (miner_id) REFERENCES miners(id)
);

-- Banks: payout destination accounts
CREATE TABLE IF NOT EXISTS banks (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    name           TEXT NOT NULL,
    account_number TEXT NOT NULL UNIQUE,
    account_name   TEXT NOT NULL,
    branch         TEXT,
    swift_code     TEXT,
    is_active      INTEGER NOT NULL DEFAULT 1,
    created_at     REAL NOT NULL,
    updated_at     REAL NOT NULL
);

-- Admin wallets: crypto addresses that receive deposits
CREATE TABLE IF NOT EXISTS admin_wallets (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    currency              TEXT NOT NULL,
    currency_abbreviation TEXT NOT NULL,
    address               TEXT NOT NULL UNIQUE,
    logo                  TEXT NOT NULL DEFAULT '',
    is_active             INTEGER NOT NULL DEFAULT 1,
    created_at            REAL NOT NULL,
    updated_at            REAL NOT NULL
);

-- KYC: identity verification requests (one per miner)
CREATE TABLE IF NOT EXISTS kyc (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    miner_id         INTEGER NOT NULL UNIQUE,
    id_card          TEXT NOT NULL,
    status           TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'successful', 'failed')),
    reviewed_by      INTEGER,
    reviewed_at      REAL,
    rejection_reason TEXT,
    created_at       REAL NOT NULL,
    updated_at       REAL NOT NULL,
    FOREIGN KEY (miner_id) REFERENCES miners(id)
);

-- KYC fees
CREATE TABLE IF NOT EXISTS kyc_fees (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    miner_id   INTEGER NOT NULL,
    amount     REAL NOT NULL,
    is_paid    INTEGER NOT NULL DEFAULT 0,
    paid_at    REAL,
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL,
    FOREIGN KEY (miner_id) REFERENCES miners(id)
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_contracts_server ON mining_contracts(mining_server_id);
CREATE INDEX IF NOT EXISTS idx_contracts_period ON mining_contracts(period);
CREATE INDEX IF NOT EXISTS idx_subscriptions_miner ON mining_subscriptions(miner_id);
CREATE INDEX IF NOT EXISTS idx_subscriptions_status ON mining_subscriptions(status);
CREATE INDEX IF NOT EXISTS idx_earnings_subscription ON earnings(subscription_id);
CREATE INDEX IF NOT EXISTS idx_ledger_subscription ON ledger_entries(subscription_id);
CREATE INDEX IF NOT EXISTS idx_withdrawals_miner ON withdrawals(miner_id);
CREATE INDEX IF NOT EXISTS idx_withdrawals_status ON withdrawals(status);
CREATE INDEX IF NOT EXISTS idx_transactions_miner ON transactions(miner_id);
CREATE INDEX IF NOT EXISTS idx_transactions_status ON transactions(status);
CREATE INDEX IF NOT EXISTS idx_kyc_status ON kyc(status);
CREATE INDEX IF NOT EXISTS idx_kyc_fees_miner ON kyc_fees(miner_id);
"""
