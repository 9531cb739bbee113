# File: goscaffold/go_templates.py
"""
goscaffold - Built-in Go Templates
===================================
Jinja2 sources for every artifact the pipeline emits, keyed by template
name.  ``TemplateRenderer`` registers them in a ``DictLoader``; a user
template directory with a file of the same name takes precedence.

Template families:
    - ``domain/*``      entity struct, errors, validation, business rules
    - ``usecase/*``     DTOs, use-case interface, service
    - ``repository/*``  repository interface, gorm and MongoDB implementations
    - ``handler/*``     HTTP (gorilla/mux), gRPC (proto + server), CLI (cobra),
                        worker
    - ``aggregator/*``  skeletons of the DI container and the entry point
    - ``wiring/*``      one-line / one-block fragments spliced into aggregators

Each template declares its own imports through the ``imports`` macro; no
cross-template de-duplication happens.
"""

from __future__ import annotations

import logging
from typing import Dict, List

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.go_templates")


# ---------------------------------------------------------------------------
# Shared macros
# ---------------------------------------------------------------------------

_MACROS: str = """\
{% macro quote_import(p) %}{{ p if ' ' in p else '"' ~ p ~ '"' }}{% endmacro %}
{% macro imports(std, ext) %}
{% if std or ext %}
import (
{% for p in std %}
\t{{ quote_import(p) }}
{% endfor %}
{% if std and ext %}

{% endif %}
{% for p in ext %}
\t{{ quote_import(p) }}
{% endfor %}
)

{% endif %}
{% endmacro %}
"""


# ---------------------------------------------------------------------------
# Domain layer
# ---------------------------------------------------------------------------

_DOMAIN_ENTITY: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set r = names.receiver %}
{% set soft = entity.features.soft_delete %}
{% set stamps = entity.features.timestamps %}
{% set needs_time = entity.has_time_fields or stamps or soft %}
{% set needs_strings = business_rules | selectattr("needs_strings") | list | length > 0 %}
{% set std = ["errors"] + (["strings"] if needs_strings else []) + (["time"] if needs_time else []) %}
{% set ext = ["gorm.io/gorm"] if (soft and is_sql) else [] %}
{{ header }}
package {{ packages.domain }}

{{ m.imports(std, ext) -}}
var (
\tErr{{ T }}NotFound    = errors.New("{{ names.human_name }} not found")
\tErrInvalid{{ T }}Data = errors.New("invalid {{ names.human_name }} data")
{% for f in fields if f.validates %}
\tErrInvalid{{ T }}{{ f.go_name }} = errors.New("{{ names.human_name }} {{ f.human_name }} is invalid")
{% endfor %}
)

// {{ T }} is stored in the {{ names.table_name }} {{ "table" if is_sql else "collection" }}.
type {{ T }} struct {
\tID {{ id.type_name }} `{{ id_tag }}`
{% for f in fields %}
\t{{ f.go_name }} {{ f.domain.type_name }} `{{ f.domain_tag }}`
{% endfor %}
{% if stamps %}
{% if is_sql %}
\tCreatedAt time.Time `json:"created_at" gorm:"autoCreateTime"`
\tUpdatedAt time.Time `json:"updated_at" gorm:"autoUpdateTime"`
{% else %}
\tCreatedAt time.Time `json:"created_at" bson:"created_at"`
\tUpdatedAt time.Time `json:"updated_at" bson:"updated_at"`
{% endif %}
{% endif %}
{% if soft %}
{% if is_sql %}
\tDeletedAt gorm.DeletedAt `json:"deleted_at,omitempty" gorm:"index"`
{% else %}
\tDeletedAt *time.Time `json:"deleted_at,omitempty" bson:"deleted_at,omitempty"`
{% endif %}
{% endif %}
}
{% if is_sql %}

// TableName pins the table gorm maps {{ T }} to.
func ({{ T }}) TableName() string {
\treturn "{{ names.table_name }}"
}
{% else %}

// {{ T }}Collection is the MongoDB collection holding {{ names.human_plural }}.
const {{ T }}Collection = "{{ names.table_name }}"
{% endif %}
{% if entity.features.validation %}

// Validate checks the invariants of a {{ names.human_name }}.
func ({{ r }} *{{ T }}) Validate() error {
{% for f in fields if f.validates %}
\tif {{ f.invalid_condition }} {
\t\treturn ErrInvalid{{ T }}{{ f.go_name }}
\t}
{% endfor %}
\treturn nil
}
{% endif %}
{% for rule in business_rules %}

func ({{ r }} *{{ T }}) {{ rule.method }}() bool {
\treturn {{ rule.expression }}
}
{% endfor %}
{% if soft %}

func ({{ r }} *{{ T }}) SoftDelete() {
{% if is_sql %}
\t{{ r }}.DeletedAt = gorm.DeletedAt{Time: time.Now(), Valid: true}
{% else %}
\tnow := time.Now()
\t{{ r }}.DeletedAt = &now
{% endif %}
}

func ({{ r }} *{{ T }}) IsDeleted() bool {
{% if is_sql %}
\treturn {{ r }}.DeletedAt.Valid
{% else %}
\treturn {{ r }}.DeletedAt != nil
{% endif %}
}
{% endif %}
"""


# ---------------------------------------------------------------------------
# Use-case layer
# ---------------------------------------------------------------------------

_USECASE_DTO: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set Ts = names.plural_type_name %}
{% set pd = packages.domain %}
{{ header }}
package {{ packages.usecase }}

{{ m.imports(["time"] if entity.has_time_fields else [], [import_paths.domain]) -}}
// Create{{ T }}Input carries the fields needed to create a {{ names.human_name }}.
type Create{{ T }}Input struct {
{% for f in fields %}
\t{{ f.go_name }} {{ f.usecase.type_name }} `json:"{{ f.json_name }}"{{ f.validate_tag }}`
{% endfor %}
}

type Create{{ T }}Output struct {
\t{{ T }} {{ pd }}.{{ T }} `json:"{{ names.file_stem }}"`
\tMessage string `json:"message"`
}

// Update{{ T }}Input uses pointers so omitted fields stay unchanged.
type Update{{ T }}Input struct {
{% for f in fields %}
\t{{ f.go_name }} *{{ f.usecase.type_name }} `json:"{{ f.json_name }},omitempty"{{ f.update_validate_tag }}`
{% endfor %}
}

type List{{ Ts }}Output struct {
\t{{ Ts }} []{{ pd }}.{{ T }} `json:"{{ names.table_name }}"`
\tTotal int `json:"total"`
\tMessage string `json:"message"`
}
"""

_USECASE_INTERFACE: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set Ts = names.plural_type_name %}
{% set pd = packages.domain %}
{% set idt = id.type_name %}
{{ header }}
package {{ packages.usecase }}

{{ m.imports([], [import_paths.domain]) -}}
// {{ T }}UseCase is the application boundary for {{ names.human_plural }}.
type {{ T }}UseCase interface {
\tCreate{{ T }}(input Create{{ T }}Input) (*Create{{ T }}Output, error)
\tGet{{ T }}(id {{ idt }}) (*{{ pd }}.{{ T }}, error)
\tUpdate{{ T }}(id {{ idt }}, input Update{{ T }}Input) (*{{ pd }}.{{ T }}, error)
\tDelete{{ T }}(id {{ idt }}) error
\tList{{ Ts }}() (*List{{ Ts }}Output, error)
{% for f in searchable %}
\tFind{{ T }}By{{ f.go_name }}({{ f.var_name }} {{ f.usecase.type_name }}) (*{{ pd }}.{{ T }}, error)
{% endfor %}
}
"""

_USECASE_SERVICE: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set Ts = names.plural_type_name %}
{% set v = names.variable_name %}
{% set vs = names.plural_variable_name %}
{% set pd = packages.domain %}
{% set pr = packages.repository %}
{% set idt = id.type_name %}
{% set svc = v ~ "Service" %}
{{ header }}
package {{ packages.usecase }}

{{ m.imports([], [import_paths.domain, import_paths.repository]) -}}
type {{ svc }} struct {
\trepo {{ pr }}.{{ T }}Repository
}

// New{{ T }}Service builds a {{ T }}UseCase on top of its repository.
func New{{ T }}Service(repo {{ pr }}.{{ T }}Repository) {{ T }}UseCase {
\treturn &{{ svc }}{repo: repo}
}

func (s *{{ svc }}) Create{{ T }}(input Create{{ T }}Input) (*Create{{ T }}Output, error) {
\t{{ v }} := {{ pd }}.{{ T }}{
{% for f in fields %}
\t\t{{ f.go_name }}: input.{{ f.go_name }},
{% endfor %}
\t}
{% if entity.features.validation %}
\tif err := {{ v }}.Validate(); err != nil {
\t\treturn nil, err
\t}
{% endif %}
\tif err := s.repo.Save(&{{ v }}); err != nil {
\t\treturn nil, err
\t}
\treturn &Create{{ T }}Output{
\t\t{{ T }}: {{ v }},
\t\tMessage: "{{ names.human_name }} created successfully",
\t}, nil
}

func (s *{{ svc }}) Get{{ T }}(id {{ idt }}) (*{{ pd }}.{{ T }}, error) {
\treturn s.repo.FindByID(id)
}

func (s *{{ svc }}) Update{{ T }}(id {{ idt }}, input Update{{ T }}Input) (*{{ pd }}.{{ T }}, error) {
\t{{ v }}, err := s.repo.FindByID(id)
\tif err != nil {
\t\treturn nil, err
\t}
{% for f in fields %}
\tif input.{{ f.go_name }} != nil {
\t\t{{ v }}.{{ f.go_name }} = *input.{{ f.go_name }}
\t}
{% endfor %}
{% if entity.features.validation %}
\tif err := {{ v }}.Validate(); err != nil {
\t\treturn nil, err
\t}
{% endif %}
\tif err := s.repo.Update({{ v }}); err != nil {
\t\treturn nil, err
\t}
\treturn {{ v }}, nil
}

func (s *{{ svc }}) Delete{{ T }}(id {{ idt }}) error {
\treturn s.repo.Delete(id)
}

func (s *{{ svc }}) List{{ Ts }}() (*List{{ Ts }}Output, error) {
\t{{ vs }}, err := s.repo.FindAll()
\tif err != nil {
\t\treturn nil, err
\t}
\treturn &List{{ Ts }}Output{
\t\t{{ Ts }}: {{ vs }},
\t\tTotal: len({{ vs }}),
\t\tMessage: "{{ names.human_plural }} listed successfully",
\t}, nil
}
{% for f in searchable %}

func (s *{{ svc }}) Find{{ T }}By{{ f.go_name }}({{ f.var_name }} {{ f.usecase.type_name }}) (*{{ pd }}.{{ T }}, error) {
\treturn s.repo.FindBy{{ f.go_name }}({{ f.var_name }})
}
{% endfor %}
"""


# ---------------------------------------------------------------------------
# Repository layer
# ---------------------------------------------------------------------------

_REPOSITORY_INTERFACE: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set v = names.variable_name %}
{% set pd = packages.domain %}
{% set idt = id.type_name %}
{{ header }}
package {{ packages.repository }}

{{ m.imports([], [import_paths.domain]) -}}
// {{ T }}Repository persists {{ names.human_plural }}.
type {{ T }}Repository interface {
\tSave({{ v }} *{{ pd }}.{{ T }}) error
\tFindByID(id {{ idt }}) (*{{ pd }}.{{ T }}, error)
{% for f in searchable %}
\tFindBy{{ f.go_name }}({{ f.var_name }} {{ f.domain.type_name }}) (*{{ pd }}.{{ T }}, error)
{% endfor %}
\tUpdate({{ v }} *{{ pd }}.{{ T }}) error
\tDelete(id {{ idt }}) error
\tFindAll() ([]{{ pd }}.{{ T }}, error)
}
"""

_REPOSITORY_GORM: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set v = names.variable_name %}
{% set vs = names.plural_variable_name %}
{% set pd = packages.domain %}
{% set idt = id.type_name %}
{% set impl = database ~ T ~ "Repository" %}
{{ header }}
package {{ packages.repository }}

{{ m.imports(["errors"], ["gorm.io/gorm", import_paths.domain]) -}}
type {{ impl }} struct {
\tdb *gorm.DB
}

// New{{ db_prefix }}{{ T }}Repository returns a gorm-backed {{ T }}Repository for {{ database }}.
func New{{ db_prefix }}{{ T }}Repository(db *gorm.DB) {{ T }}Repository {
\treturn &{{ impl }}{db: db}
}

func (r *{{ impl }}) Save({{ v }} *{{ pd }}.{{ T }}) error {
\treturn r.db.Create({{ v }}).Error
}

func (r *{{ impl }}) FindByID(id {{ idt }}) (*{{ pd }}.{{ T }}, error) {
\tvar {{ v }} {{ pd }}.{{ T }}
\tif err := r.db.First(&{{ v }}, id).Error; err != nil {
\t\tif errors.Is(err, gorm.ErrRecordNotFound) {
\t\t\treturn nil, {{ pd }}.Err{{ T }}NotFound
\t\t}
\t\treturn nil, err
\t}
\treturn &{{ v }}, nil
}
{% for f in searchable %}

func (r *{{ impl }}) FindBy{{ f.go_name }}({{ f.var_name }} {{ f.domain.type_name }}) (*{{ pd }}.{{ T }}, error) {
\tvar result {{ pd }}.{{ T }}
\tif err := r.db.Where("{{ f.column_name }} = ?", {{ f.var_name }}).First(&result).Error; err != nil {
\t\tif errors.Is(err, gorm.ErrRecordNotFound) {
\t\t\treturn nil, {{ pd }}.Err{{ T }}NotFound
\t\t}
\t\treturn nil, err
\t}
\treturn &result, nil
}
{% endfor %}

func (r *{{ impl }}) Update({{ v }} *{{ pd }}.{{ T }}) error {
\treturn r.db.Save({{ v }}).Error
}

func (r *{{ impl }}) Delete(id {{ idt }}) error {
\treturn r.db.Delete(&{{ pd }}.{{ T }}{}, id).Error
}

func (r *{{ impl }}) FindAll() ([]{{ pd }}.{{ T }}, error) {
\tvar {{ vs }} []{{ pd }}.{{ T }}
\tif err := r.db.Find(&{{ vs }}).Error; err != nil {
\t\treturn nil, err
\t}
\treturn {{ vs }}, nil
}
"""

_REPOSITORY_MONGODB: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set v = names.variable_name %}
{% set vs = names.plural_variable_name %}
{% set pd = packages.domain %}
{% set impl = "mongo" ~ T ~ "Repository" %}
{{ header }}
package {{ packages.repository }}

{{ m.imports(["context", "errors"], ["go.mongodb.org/mongo-driver/bson", "go.mongodb.org/mongo-driver/bson/primitive", "go.mongodb.org/mongo-driver/mongo", import_paths.domain]) -}}
type {{ impl }} struct {
\tcollection *mongo.Collection
}

// New{{ db_prefix }}{{ T }}Repository returns a MongoDB-backed {{ T }}Repository.
func New{{ db_prefix }}{{ T }}Repository(db *mongo.Database) {{ T }}Repository {
\treturn &{{ impl }}{collection: db.Collection({{ pd }}.{{ T }}Collection)}
}

func (r *{{ impl }}) Save({{ v }} *{{ pd }}.{{ T }}) error {
\t{{ v }}.ID = primitive.NewObjectID().Hex()
\t_, err := r.collection.InsertOne(context.Background(), {{ v }})
\treturn err
}

func (r *{{ impl }}) findOne(filter bson.M) (*{{ pd }}.{{ T }}, error) {
\tvar {{ v }} {{ pd }}.{{ T }}
\terr := r.collection.FindOne(context.Background(), filter).Decode(&{{ v }})
\tif errors.Is(err, mongo.ErrNoDocuments) {
\t\treturn nil, {{ pd }}.Err{{ T }}NotFound
\t}
\tif err != nil {
\t\treturn nil, err
\t}
\treturn &{{ v }}, nil
}

func (r *{{ impl }}) FindByID(id string) (*{{ pd }}.{{ T }}, error) {
\treturn r.findOne(bson.M{"_id": id})
}
{% for f in searchable %}

func (r *{{ impl }}) FindBy{{ f.go_name }}({{ f.var_name }} {{ f.domain.type_name }}) (*{{ pd }}.{{ T }}, error) {
\treturn r.findOne(bson.M{"{{ f.column_name }}": {{ f.var_name }}})
}
{% endfor %}

func (r *{{ impl }}) Update({{ v }} *{{ pd }}.{{ T }}) error {
\t_, err := r.collection.ReplaceOne(context.Background(), bson.M{"_id": {{ v }}.ID}, {{ v }})
\treturn err
}

func (r *{{ impl }}) Delete(id string) error {
\t_, err := r.collection.DeleteOne(context.Background(), bson.M{"_id": id})
\treturn err
}

func (r *{{ impl }}) FindAll() ([]{{ pd }}.{{ T }}, error) {
\tctx := context.Background()
\tcursor, err := r.collection.Find(ctx, bson.M{})
\tif err != nil {
\t\treturn nil, err
\t}
\tdefer cursor.Close(ctx)

\tvar {{ vs }} []{{ pd }}.{{ T }}
\tif err := cursor.All(ctx, &{{ vs }}); err != nil {
\t\treturn nil, err
\t}
\treturn {{ vs }}, nil
}
"""


# ---------------------------------------------------------------------------
# Handler layer
# ---------------------------------------------------------------------------

_HANDLER_HTTP: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set Ts = names.plural_type_name %}
{% set v = names.variable_name %}
{% set pu = packages.usecase %}
{% set id_arg = "uint(id)" if id_numeric else "id" %}
{% macro parse_id() %}
{% if id_numeric %}
\tid, err := strconv.ParseUint(mux.Vars(r)["id"], 10, 64)
\tif err != nil {
\t\thttp.Error(w, "invalid {{ names.human_name }} id", http.StatusBadRequest)
\t\treturn
\t}
{% else %}
\tid := mux.Vars(r)["id"]
{% endif %}
{% endmacro %}
{{ header }}
package {{ packages.http }}

{{ m.imports(["encoding/json", "net/http"] + (["strconv"] if id_numeric else []), ["github.com/gorilla/mux", import_paths.usecase]) -}}
// {{ T }}Handler exposes {{ names.human_plural }} over HTTP.
type {{ T }}Handler struct {
\tuc {{ pu }}.{{ T }}UseCase
}

func New{{ T }}Handler(uc {{ pu }}.{{ T }}UseCase) *{{ T }}Handler {
\treturn &{{ T }}Handler{uc: uc}
}

func (h *{{ T }}Handler) Create{{ T }}(w http.ResponseWriter, r *http.Request) {
\tvar input {{ pu }}.Create{{ T }}Input
\tif err := json.NewDecoder(r.Body).Decode(&input); err != nil {
\t\thttp.Error(w, "invalid request body", http.StatusBadRequest)
\t\treturn
\t}

\toutput, err := h.uc.Create{{ T }}(input)
\tif err != nil {
\t\thttp.Error(w, err.Error(), http.StatusUnprocessableEntity)
\t\treturn
\t}

\tw.Header().Set("Content-Type", "application/json")
\tw.WriteHeader(http.StatusCreated)
\tjson.NewEncoder(w).Encode(output)
}

func (h *{{ T }}Handler) Get{{ T }}(w http.ResponseWriter, r *http.Request) {
{{ parse_id() }}
\t{{ v }}, err := h.uc.Get{{ T }}({{ id_arg }})
\tif err != nil {
\t\thttp.Error(w, err.Error(), http.StatusNotFound)
\t\treturn
\t}

\tw.Header().Set("Content-Type", "application/json")
\tjson.NewEncoder(w).Encode({{ v }})
}

func (h *{{ T }}Handler) Update{{ T }}(w http.ResponseWriter, r *http.Request) {
{{ parse_id() }}
\tvar input {{ pu }}.Update{{ T }}Input
\tif err := json.NewDecoder(r.Body).Decode(&input); err != nil {
\t\thttp.Error(w, "invalid request body", http.StatusBadRequest)
\t\treturn
\t}

\t{{ v }}, err := h.uc.Update{{ T }}({{ id_arg }}, input)
\tif err != nil {
\t\thttp.Error(w, err.Error(), http.StatusUnprocessableEntity)
\t\treturn
\t}

\tw.Header().Set("Content-Type", "application/json")
\tjson.NewEncoder(w).Encode({{ v }})
}

func (h *{{ T }}Handler) Delete{{ T }}(w http.ResponseWriter, r *http.Request) {
{{ parse_id() }}
\tif err := h.uc.Delete{{ T }}({{ id_arg }}); err != nil {
\t\thttp.Error(w, err.Error(), http.StatusInternalServerError)
\t\treturn
\t}

\tw.WriteHeader(http.StatusNoContent)
}

func (h *{{ T }}Handler) List{{ Ts }}(w http.ResponseWriter, r *http.Request) {
\toutput, err := h.uc.List{{ Ts }}()
\tif err != nil {
\t\thttp.Error(w, err.Error(), http.StatusInternalServerError)
\t\treturn
\t}

\tw.Header().Set("Content-Type", "application/json")
\tjson.NewEncoder(w).Encode(output)
}
"""

_HANDLER_GRPC_PROTO: str = """\
{% set T = names.type_name %}
{% set Ts = names.plural_type_name %}
{{ header }}
syntax = "proto3";

package {{ names.file_stem }};

option go_package = "{{ import_paths.grpc }}/{{ names.file_stem }}pb";
{% if entity.has_time_fields %}

import "google/protobuf/timestamp.proto";
{% endif %}

message {{ T }} {
  {{ id_proto }} id = 1;
{% for f in fields %}
  {{ f.handler.type_name }} {{ f.column_name }} = {{ loop.index + 1 }};
{% endfor %}
}

message Create{{ T }}Request {
{% for f in fields %}
  {{ f.handler.type_name }} {{ f.column_name }} = {{ loop.index }};
{% endfor %}
}

message Create{{ T }}Response {
  {{ T }} {{ names.file_stem }} = 1;
  string message = 2;
}

message Get{{ T }}Request {
  {{ id_proto }} id = 1;
}

message Update{{ T }}Request {
  {{ id_proto }} id = 1;
{% for f in fields %}
  {{ "" if f.semantic == "time" else "optional " }}{{ f.handler.type_name }} {{ f.column_name }} = {{ loop.index + 1 }};
{% endfor %}
}

message Delete{{ T }}Request {
  {{ id_proto }} id = 1;
}

message Delete{{ T }}Response {
  bool success = 1;
}

message List{{ Ts }}Request {}

message List{{ Ts }}Response {
  repeated {{ T }} items = 1;
  int32 total = 2;
}

service {{ T }}Service {
  rpc Create{{ T }}(Create{{ T }}Request) returns (Create{{ T }}Response);
  rpc Get{{ T }}(Get{{ T }}Request) returns ({{ T }});
  rpc Update{{ T }}(Update{{ T }}Request) returns ({{ T }});
  rpc Delete{{ T }}(Delete{{ T }}Request) returns (Delete{{ T }}Response);
  rpc List{{ Ts }}(List{{ Ts }}Request) returns (List{{ Ts }}Response);
}
"""

_HANDLER_GRPC_SERVER: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set Ts = names.plural_type_name %}
{% set v = names.variable_name %}
{% set pu = packages.usecase %}
{% set pd = packages.domain %}
{% set id_in = "uint(req.GetId())" if id_numeric else "req.GetId()" %}
{% set id_out = "uint64(" ~ v ~ ".ID)" if id_numeric else v ~ ".ID" %}
{% macro from_pb(f, expr) %}{% if f.semantic == "int" %}int({{ expr }}){% elif f.semantic == "reference" %}uint({{ expr }}){% elif f.semantic == "time" %}{{ expr }}.AsTime(){% else %}{{ expr }}{% endif %}{% endmacro %}
{% macro to_pb(f, expr) %}{% if f.semantic == "int" %}int64({{ expr }}){% elif f.semantic == "reference" %}uint64({{ expr }}){% elif f.semantic == "time" %}timestamppb.New({{ expr }}){% else %}{{ expr }}{% endif %}{% endmacro %}
{% set ext = ["google.golang.org/grpc/codes", "google.golang.org/grpc/status"] + (["google.golang.org/protobuf/types/known/timestamppb"] if entity.has_time_fields else []) + [import_paths.domain, import_paths.usecase, 'pb "' ~ import_paths.grpc ~ '/' ~ names.file_stem ~ 'pb"'] %}
{{ header }}
package {{ packages.grpc }}

{{ m.imports(["context"], ext) -}}
// {{ T }}Server implements pb.{{ T }}ServiceServer on top of the use case.
type {{ T }}Server struct {
\tpb.Unimplemented{{ T }}ServiceServer
\tuc {{ pu }}.{{ T }}UseCase
}

func New{{ T }}Server(uc {{ pu }}.{{ T }}UseCase) *{{ T }}Server {
\treturn &{{ T }}Server{uc: uc}
}

func to{{ T }}Proto({{ v }} *{{ pd }}.{{ T }}) *pb.{{ T }} {
\treturn &pb.{{ T }}{
\t\tId: {{ id_out }},
{% for f in fields %}
\t\t{{ f.pb_name }}: {{ to_pb(f, v ~ "." ~ f.go_name) }},
{% endfor %}
\t}
}

func (s *{{ T }}Server) Create{{ T }}(ctx context.Context, req *pb.Create{{ T }}Request) (*pb.Create{{ T }}Response, error) {
\toutput, err := s.uc.Create{{ T }}({{ pu }}.Create{{ T }}Input{
{% for f in fields %}
\t\t{{ f.go_name }}: {{ from_pb(f, "req.Get" ~ f.pb_name ~ "()") }},
{% endfor %}
\t})
\tif err != nil {
\t\treturn nil, status.Error(codes.InvalidArgument, err.Error())
\t}
\treturn &pb.Create{{ T }}Response{
\t\t{{ T }}: to{{ T }}Proto(&output.{{ T }}),
\t\tMessage: output.Message,
\t}, nil
}

func (s *{{ T }}Server) Get{{ T }}(ctx context.Context, req *pb.Get{{ T }}Request) (*pb.{{ T }}, error) {
\t{{ v }}, err := s.uc.Get{{ T }}({{ id_in }})
\tif err != nil {
\t\treturn nil, status.Error(codes.NotFound, err.Error())
\t}
\treturn to{{ T }}Proto({{ v }}), nil
}

func (s *{{ T }}Server) Update{{ T }}(ctx context.Context, req *pb.Update{{ T }}Request) (*pb.{{ T }}, error) {
\tinput := {{ pu }}.Update{{ T }}Input{}
{% for f in fields %}
\tif req.{{ f.pb_name }} != nil {
\t\tvalue := {{ from_pb(f, "req.Get" ~ f.pb_name ~ "()") }}
\t\tinput.{{ f.go_name }} = &value
\t}
{% endfor %}
\t{{ v }}, err := s.uc.Update{{ T }}({{ id_in }}, input)
\tif err != nil {
\t\treturn nil, status.Error(codes.InvalidArgument, err.Error())
\t}
\treturn to{{ T }}Proto({{ v }}), nil
}

func (s *{{ T }}Server) Delete{{ T }}(ctx context.Context, req *pb.Delete{{ T }}Request) (*pb.Delete{{ T }}Response, error) {
\tif err := s.uc.Delete{{ T }}({{ id_in }}); err != nil {
\t\treturn nil, status.Error(codes.Internal, err.Error())
\t}
\treturn &pb.Delete{{ T }}Response{Success: true}, nil
}

func (s *{{ T }}Server) List{{ Ts }}(ctx context.Context, req *pb.List{{ Ts }}Request) (*pb.List{{ Ts }}Response, error) {
\toutput, err := s.uc.List{{ Ts }}()
\tif err != nil {
\t\treturn nil, status.Error(codes.Internal, err.Error())
\t}
\titems := make([]*pb.{{ T }}, 0, len(output.{{ Ts }}))
\tfor i := range output.{{ Ts }} {
\t\titems = append(items, to{{ T }}Proto(&output.{{ Ts }}[i]))
\t}
\treturn &pb.List{{ Ts }}Response{Items: items, Total: int32(output.Total)}, nil
}
"""

_HANDLER_CLI: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set Ts = names.plural_type_name %}
{% set pu = packages.usecase %}
{% set id_parse = "strconv.ParseUint(args[0], 10, 64)" %}
{% set time_fields = fields | selectattr("semantic", "equalto", "time") | list %}
{% macro flag(f) %}
{% if f.semantic == "string" %}
\tcmd.Flags().StringVar(&input.{{ f.go_name }}, "{{ f.flag_name }}", "", "{{ f.human_name }}")
{% elif f.semantic == "int" %}
\tcmd.Flags().IntVar(&input.{{ f.go_name }}, "{{ f.flag_name }}", 0, "{{ f.human_name }}")
{% elif f.semantic == "float" %}
\tcmd.Flags().Float64Var(&input.{{ f.go_name }}, "{{ f.flag_name }}", 0, "{{ f.human_name }}")
{% elif f.semantic == "bool" %}
\tcmd.Flags().BoolVar(&input.{{ f.go_name }}, "{{ f.flag_name }}", false, "{{ f.human_name }}")
{% elif f.semantic == "reference" %}
\tcmd.Flags().UintVar(&input.{{ f.go_name }}, "{{ f.flag_name }}", 0, "{{ f.human_name }}")
{% elif f.semantic == "time" %}
\tcmd.Flags().StringVar(&{{ f.var_name }}Raw, "{{ f.flag_name }}", "", "{{ f.human_name }} (RFC3339)")
{% endif %}
{% if f.required %}
\tcmd.MarkFlagRequired("{{ f.flag_name }}")
{% endif %}
{% endmacro %}
{% macro id_from_args() %}
{% if id_numeric %}
\t\t\tid, err := {{ id_parse }}
\t\t\tif err != nil {
\t\t\t\treturn err
\t\t\t}
{% else %}
\t\t\tid := args[0]
{% endif %}
{% endmacro %}
{% set id_arg = "uint(id)" if id_numeric else "id" %}
{{ header }}
package {{ packages.cli }}

{{ m.imports(["encoding/json", "os"] + (["strconv"] if id_numeric else []) + (["time"] if time_fields else []), ["github.com/spf13/cobra", import_paths.usecase]) -}}
// New{{ T }}Command groups the {{ names.human_name }} subcommands.
func New{{ T }}Command(uc {{ pu }}.{{ T }}UseCase) *cobra.Command {
\tcmd := &cobra.Command{
\t\tUse:   "{{ names.route_segment }}",
\t\tShort: "Manage {{ names.human_plural }}",
\t}
\tcmd.AddCommand(
\t\tnewCreate{{ T }}Command(uc),
\t\tnewGet{{ T }}Command(uc),
\t\tnewList{{ Ts }}Command(uc),
\t\tnewDelete{{ T }}Command(uc),
\t)
\treturn cmd
}

func newCreate{{ T }}Command(uc {{ pu }}.{{ T }}UseCase) *cobra.Command {
\tvar input {{ pu }}.Create{{ T }}Input
{% for f in time_fields %}
\tvar {{ f.var_name }}Raw string
{% endfor %}
\tcmd := &cobra.Command{
\t\tUse:   "create",
\t\tShort: "Create a {{ names.human_name }}",
\t\tRunE: func(cmd *cobra.Command, args []string) error {
{% for f in time_fields %}
\t\t\tif {{ f.var_name }}Raw != "" {
\t\t\t\tparsed, err := time.Parse(time.RFC3339, {{ f.var_name }}Raw)
\t\t\t\tif err != nil {
\t\t\t\t\treturn err
\t\t\t\t}
\t\t\t\tinput.{{ f.go_name }} = parsed
\t\t\t}
{% endfor %}
\t\t\toutput, err := uc.Create{{ T }}(input)
\t\t\tif err != nil {
\t\t\t\treturn err
\t\t\t}
\t\t\treturn print{{ T }}JSON(output)
\t\t},
\t}
{% for f in fields %}
{{ flag(f) -}}
{% endfor %}
\treturn cmd
}

func newGet{{ T }}Command(uc {{ pu }}.{{ T }}UseCase) *cobra.Command {
\treturn &cobra.Command{
\t\tUse:   "get [id]",
\t\tShort: "Show one {{ names.human_name }}",
\t\tArgs:  cobra.ExactArgs(1),
\t\tRunE: func(cmd *cobra.Command, args []string) error {
{{ id_from_args() }}
\t\t\tresult, err := uc.Get{{ T }}({{ id_arg }})
\t\t\tif err != nil {
\t\t\t\treturn err
\t\t\t}
\t\t\treturn print{{ T }}JSON(result)
\t\t},
\t}
}

func newList{{ Ts }}Command(uc {{ pu }}.{{ T }}UseCase) *cobra.Command {
\treturn &cobra.Command{
\t\tUse:   "list",
\t\tShort: "List {{ names.human_plural }}",
\t\tRunE: func(cmd *cobra.Command, args []string) error {
\t\t\toutput, err := uc.List{{ Ts }}()
\t\t\tif err != nil {
\t\t\t\treturn err
\t\t\t}
\t\t\treturn print{{ T }}JSON(output)
\t\t},
\t}
}

func newDelete{{ T }}Command(uc {{ pu }}.{{ T }}UseCase) *cobra.Command {
\treturn &cobra.Command{
\t\tUse:   "delete [id]",
\t\tShort: "Delete a {{ names.human_name }}",
\t\tArgs:  cobra.ExactArgs(1),
\t\tRunE: func(cmd *cobra.Command, args []string) error {
{{ id_from_args() }}
\t\t\treturn uc.Delete{{ T }}({{ id_arg }})
\t\t},
\t}
}

func print{{ T }}JSON(value interface{}) error {
\tenc := json.NewEncoder(os.Stdout)
\tenc.SetIndent("", "  ")
\treturn enc.Encode(value)
}
"""

_HANDLER_WORKER: str = """\
{% import "_macros.j2" as m %}
{% set T = names.type_name %}
{% set pu = packages.usecase %}
{{ header }}
package {{ packages.worker }}

{{ m.imports(["context", "encoding/json", "fmt"], [import_paths.usecase]) -}}
// {{ T }}Message is the payload a {{ T }}Worker consumes from the queue.
type {{ T }}Message struct {
\tAction string          `json:"action"`
\tID     {{ id.type_name }} `json:"id,omitempty"`
\tData   json.RawMessage `json:"data,omitempty"`
}

// {{ T }}Worker applies queued {{ names.human_name }} commands.
type {{ T }}Worker struct {
\tuc {{ pu }}.{{ T }}UseCase
}

func New{{ T }}Worker(uc {{ pu }}.{{ T }}UseCase) *{{ T }}Worker {
\treturn &{{ T }}Worker{uc: uc}
}

func (w *{{ T }}Worker) Handle(ctx context.Context, payload []byte) error {
\tvar msg {{ T }}Message
\tif err := json.Unmarshal(payload, &msg); err != nil {
\t\treturn fmt.Errorf("decode {{ names.human_name }} message: %w", err)
\t}

\tswitch msg.Action {
\tcase "create":
\t\tvar input {{ pu }}.Create{{ T }}Input
\t\tif err := json.Unmarshal(msg.Data, &input); err != nil {
\t\t\treturn err
\t\t}
\t\t_, err := w.uc.Create{{ T }}(input)
\t\treturn err
\tcase "update":
\t\tvar input {{ pu }}.Update{{ T }}Input
\t\tif err := json.Unmarshal(msg.Data, &input); err != nil {
\t\t\treturn err
\t\t}
\t\t_, err := w.uc.Update{{ T }}(msg.ID, input)
\t\treturn err
\tcase "delete":
\t\treturn w.uc.Delete{{ T }}(msg.ID)
\tdefault:
\t\treturn fmt.Errorf("unknown {{ names.human_name }} action %q", msg.Action)
\t}
}
"""


# ---------------------------------------------------------------------------
# Aggregator skeletons
# ---------------------------------------------------------------------------

_AGGREGATOR_CONTAINER: str = """\
{% import "_macros.j2" as m %}
{{ header }}
package {{ packages.di }}

{{ m.imports([], [db_handle.import_path]) -}}
type Container struct {
\tdb {{ db_handle.type_name }}

\t// Repositories

\t// Use Cases

\t// Handlers
}

func NewContainer(db {{ db_handle.type_name }}) *Container {
\tc := &Container{db: db}
\tc.setupRepositories()
\tc.setupUseCases()
\tc.setupHandlers()
\treturn c
}

func (c *Container) setupRepositories() {
}

func (c *Container) setupUseCases() {
}

func (c *Container) setupHandlers() {
}

// Getters
"""

_AGGREGATOR_MAIN: str = """\
{% import "_macros.j2" as m %}
{% if is_sql %}
{% set ext = ["github.com/gorilla/mux", "gorm.io/driver/" ~ database, "gorm.io/gorm", import_paths.di] %}
{% set std = ["log", "net/http", "os"] %}
{% else %}
{% set ext = ["github.com/gorilla/mux", "go.mongodb.org/mongo-driver/mongo", "go.mongodb.org/mongo-driver/mongo/options", import_paths.di] %}
{% set std = ["context", "log", "net/http", "os"] %}
{% endif %}
{{ header }}
package main

{{ m.imports(std, ext) -}}
func main() {
{% if is_sql %}
\tdb, err := gorm.Open({{ database }}.Open(os.Getenv("DATABASE_URL")), &gorm.Config{})
\tif err != nil {
\t\tlog.Fatalf("failed to connect to database: %v", err)
\t}
\tif err := db.AutoMigrate(
\t); err != nil {
\t\tlog.Fatalf("failed to migrate database: %v", err)
\t}
{% else %}
\tclient, err := mongo.Connect(context.Background(), options.Client().ApplyURI(os.Getenv("MONGODB_URI")))
\tif err != nil {
\t\tlog.Fatalf("failed to connect to mongodb: %v", err)
\t}
\tdb := client.Database(os.Getenv("MONGODB_DATABASE"))
{% endif %}

\tcontainer := {{ packages.di }}.NewContainer(db)
\t_ = container

\tport := os.Getenv("PORT")
\tif port == "" {
\t\tport = "8080"
\t}

\trouter := mux.NewRouter()
\trouter.HandleFunc("/health", func(w http.ResponseWriter, r *http.Request) {
\t\tw.WriteHeader(http.StatusOK)
\t}).Methods("GET")

\tlog.Printf("Server starting on port %s", port)
\tlog.Fatal(http.ListenAndServe(":"+port, router))
}
"""


# ---------------------------------------------------------------------------
# Wiring fragments (rendered unindented; the integrator indents them)
# ---------------------------------------------------------------------------

_WIRING: Dict[str, str] = {
    "wiring/repository_field.j2": (
        "{{ names.variable_name }}Repo {{ packages.repository }}."
        "{{ names.type_name }}Repository\n"
    ),
    "wiring/usecase_field.j2": (
        "{{ names.variable_name }}UC {{ packages.usecase }}."
        "{{ names.type_name }}UseCase\n"
    ),
    "wiring/handler_field.j2": (
        "{{ names.variable_name }}Handler *{{ packages.http }}."
        "{{ names.type_name }}Handler\n"
    ),
    "wiring/repository_setup.j2": (
        "c.{{ names.variable_name }}Repo = {{ packages.repository }}."
        "New{{ db_prefix }}{{ names.type_name }}Repository(c.db)\n"
    ),
    "wiring/usecase_setup.j2": (
        "c.{{ names.variable_name }}UC = {{ packages.usecase }}."
        "New{{ names.type_name }}Service(c.{{ names.variable_name }}Repo)\n"
    ),
    "wiring/handler_setup.j2": (
        "c.{{ names.variable_name }}Handler = {{ packages.http }}."
        "New{{ names.type_name }}Handler(c.{{ names.variable_name }}UC)\n"
    ),
    "wiring/repository_getter.j2": (
        "func (c *Container) {{ names.type_name }}Repository() "
        "{{ packages.repository }}.{{ names.type_name }}Repository {\n"
        "\treturn c.{{ names.variable_name }}Repo\n"
        "}\n"
    ),
    "wiring/usecase_getter.j2": (
        "func (c *Container) {{ names.type_name }}UseCase() "
        "{{ packages.usecase }}.{{ names.type_name }}UseCase {\n"
        "\treturn c.{{ names.variable_name }}UC\n"
        "}\n"
    ),
    "wiring/handler_getter.j2": (
        "func (c *Container) {{ names.type_name }}Handler() "
        "*{{ packages.http }}.{{ names.type_name }}Handler {\n"
        "\treturn c.{{ names.variable_name }}Handler\n"
        "}\n"
    ),
    "wiring/automigrate.j2": "&{{ packages.domain }}.{{ names.type_name }}{},\n",
    "wiring/routes.j2": """\
{% set T = names.type_name %}
{% set h = names.variable_name ~ "Handler" %}
{% set base = api_prefix ~ names.route_path %}
// {{ T }} routes
{{ h }} := container.{{ T }}Handler()
router.HandleFunc("{{ base }}", {{ h }}.Create{{ T }}).Methods("POST")
router.HandleFunc("{{ base }}/{id}", {{ h }}.Get{{ T }}).Methods("GET")
router.HandleFunc("{{ base }}/{id}", {{ h }}.Update{{ T }}).Methods("PUT")
router.HandleFunc("{{ base }}/{id}", {{ h }}.Delete{{ T }}).Methods("DELETE")
router.HandleFunc("{{ base }}", {{ h }}.List{{ names.plural_type_name }}).Methods("GET")
""",
}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

BUILTIN_TEMPLATES: Dict[str, str] = {
    "_macros.j2": _MACROS,
    "domain/entity.go.j2": _DOMAIN_ENTITY,
    "usecase/dto.go.j2": _USECASE_DTO,
    "usecase/interface.go.j2": _USECASE_INTERFACE,
    "usecase/service.go.j2": _USECASE_SERVICE,
    "repository/interface.go.j2": _REPOSITORY_INTERFACE,
    "repository/gorm.go.j2": _REPOSITORY_GORM,
    "repository/mongodb.go.j2": _REPOSITORY_MONGODB,
    "handler/http.go.j2": _HANDLER_HTTP,
    "handler/grpc.proto.j2": _HANDLER_GRPC_PROTO,
    "handler/grpc.go.j2": _HANDLER_GRPC_SERVER,
    "handler/cli.go.j2": _HANDLER_CLI,
    "handler/worker.go.j2": _HANDLER_WORKER,
    "aggregator/container.go.j2": _AGGREGATOR_CONTAINER,
    "aggregator/main.go.j2": _AGGREGATOR_MAIN,
    **_WIRING,
}


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "BUILTIN_TEMPLATES",
]

logger.debug("goscaffold.go_templates loaded — %d templates.", len(BUILTIN_TEMPLATES))
